from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import httpx

from lgtm_stack.core.configs import LokiConfiguration
from lgtm_stack.domain.common.utils import DateTimeUtils


class LokiClient:
    """Minimal client for Loki's readiness probe and push API."""

    def __init__(self, config: LokiConfiguration, client: httpx.AsyncClient) -> None:
        self.config = config
        self._client = client

    async def is_ready(self) -> bool:
        """``True`` when ``/ready`` answers 2xx. Transport errors propagate."""
        response = await self._client.get(
            self.config.ready_url, timeout=self.config.timeout
        )
        return response.is_success

    async def push(
        self,
        entries: Iterable[tuple[str, str]],
        labels: Mapping[str, str] | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """Push ``(level, line)`` entries as one labelled stream per level."""
        labels = dict(self.config.direct_labels if labels is None else labels)
        ts = DateTimeUtils.to_unix_nanos(timestamp or DateTimeUtils.utcnow())

        streams: dict[str, dict[str, Any]] = {}
        for offset, (level, line) in enumerate(entries):
            stream = streams.setdefault(
                level, {'stream': {**labels, 'level': level}, 'values': []}
            )
            # loki rejects out-of-order entries within a stream
            stream['values'].append([str(ts + offset), line])

        if not streams:
            return

        response = await self._client.post(
            self.config.push_url,
            json={'streams': list(streams.values())},
            timeout=self.config.timeout,
        )
        response.raise_for_status()
