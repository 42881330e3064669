"""String Utilities Module"""

import re

from kink import di

from lgtm_stack.core.config import Configuration


class StringUtils:
    """Collection of static string utility methods."""

    _NON_ALNUM_RE = re.compile(r'[^a-zA-Z0-9]+')

    @staticmethod
    def slugify(text: str, max_length: int | None = 80) -> str:
        """Generate URL slug from *text* limited to *max_length*."""
        text = StringUtils._NON_ALNUM_RE.sub('-', text.lower())
        text = re.sub(r'-{2,}', '-', text).strip('-')
        if max_length:
            text = text[:max_length].rstrip('-')
        return text

    @staticmethod
    def service_name() -> str:
        """Service name used for resource attributes and log labels."""
        if Configuration in di:
            return StringUtils.slugify(di[Configuration].app_name)

        return 'lgtm-stack'
