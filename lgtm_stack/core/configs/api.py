import re
from typing import ClassVar
from ipaddress import AddressValueError, IPv4Address, IPv6Address

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lgtm_stack.core.paths import ROOT_PATH

_WILDCARD_HOSTS = {'0.0.0.0': '127.0.0.1', '::': '::1'}  # noqa: S104


# noinspection PyNestedDecorators
class APIConfiguration(BaseSettings):
    """API configuration."""

    _HOSTNAME_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r'^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$')

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='API_',
        extra='ignore',
    )

    host: str = Field(
        default='127.0.0.1', description='API server bind address (IP or hostname)'
    )
    port: int = Field(
        default=8080, ge=1, le=65535, description='API server port number'
    )
    public_url: AnyHttpUrl | None = Field(
        None,
        description=(
            'Address the service uses to reach itself (cascades, readiness, '
            'load tests). Derived from host and port when unset.'
        ),
    )

    @property
    def base_url(self) -> str:
        if self.public_url is not None:
            return str(self.public_url).rstrip('/')

        host = _WILDCARD_HOSTS.get(self.host, self.host)
        if ':' in host:
            host = f'[{host}]'

        return f'http://{host}:{self.port}'

    @field_validator('host')
    @classmethod
    def validate_host(cls, value: str) -> str:
        return cls._validate_single_host(value)

    @classmethod
    def _validate_single_host(cls, host: str) -> str:
        try:
            IPv4Address(host)
            return host
        except AddressValueError:
            pass

        try:
            IPv6Address(host)
            return host
        except AddressValueError:
            pass

        return cls._validate_hostname(host)

    @classmethod
    def _validate_hostname(cls, hostname: str) -> str:
        if not hostname or len(hostname) > 253:
            msg = f'invalid hostname length: {hostname}'
            raise ValueError(msg)

        labels = hostname.split('.')
        invalid_labels = [
            label for label in labels if not cls._HOSTNAME_PATTERN.match(label)
        ]

        if invalid_labels:
            msg = f'invalid hostname "{hostname}": invalid labels {invalid_labels}'
            raise ValueError(msg)

        return hostname
