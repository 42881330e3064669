"""
Probabilistic calls from one demo endpoint to another.

Every handler consults :data:`DEFAULT_CASCADE_RULES` once per request. When
its draw hits, the handler calls the rule's target through the service's own
HTTP address before answering, so one inbound request fans out into a
multi-hop trace. The rules form a cycle (root -> health -> test-logs ->
loki-test -> force-logs -> trace-test -> root). Nothing breaks that cycle
unless ``max_depth`` is configured.
"""

from __future__ import annotations

import random
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from fastapi import Request

    from lgtm_stack.domain.endpoints import EndpointRegistry
    from lgtm_stack.infrastructure.observability import TelemetryContext

CASCADE_DEPTH_HEADER = 'x-cascade-depth'


@dataclass(frozen=True)
class CascadeRule:
    """Draw from ``[0, modulus)`` and call ``target`` when it equals ``trigger``."""

    modulus: int
    target: str
    trigger: int = 1

    def __post_init__(self) -> None:
        if self.modulus < 1:
            msg = f'modulus must be positive, got {self.modulus}'
            raise ValueError(msg)

        if not 0 <= self.trigger < self.modulus:
            msg = f'trigger {self.trigger} outside draw range [0, {self.modulus})'
            raise ValueError(msg)

    @property
    def probability(self) -> float:
        return 1 / self.modulus


DEFAULT_CASCADE_RULES: Mapping[str, CascadeRule] = {
    'root': CascadeRule(modulus=2, target='health'),
    'health': CascadeRule(modulus=3, target='test-logs'),
    'test-logs': CascadeRule(modulus=4, target='loki-test'),
    'loki-test': CascadeRule(modulus=3, target='force-logs'),
    'force-logs': CascadeRule(modulus=5, target='trace-test'),
    'trace-test': CascadeRule(modulus=6, target='root'),
}


@dataclass(frozen=True)
class CascadeOutcome:
    source: str
    target: str
    depth: int
    status_code: int | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


class CascadeSimulator:
    def __init__(
        self,
        registry: EndpointRegistry,
        telemetry: TelemetryContext,
        client: httpx.AsyncClient,
        base_url: str,
        rules: Mapping[str, CascadeRule] | None = None,
        timeout: float = 30.0,
        max_depth: int | None = None,
        enabled: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        self._registry = registry
        self._telemetry = telemetry
        self._client = client
        self._base_url = base_url.rstrip('/')
        self.rules = dict(DEFAULT_CASCADE_RULES if rules is None else rules)
        self._timeout = timeout
        self._max_depth = max_depth
        self._enabled = enabled
        self.rng = rng or random.SystemRandom()

    def decide(self, handler_id: str, rng: random.Random | None = None) -> str | None:
        """Return the endpoint *handler_id* should call, or ``None``."""
        rule = self.rules.get(handler_id)
        if rule is None:
            return None

        draw = (rng or self.rng).randrange(rule.modulus)

        return rule.target if draw == rule.trigger else None

    async def cascade(
        self, handler_id: str, request: Request | None = None
    ) -> CascadeOutcome | None:
        """Maybe call the next endpoint for *handler_id*. Never raises on I/O."""
        if not self._enabled:
            return None

        depth = self.depth_of(request)
        if self._max_depth is not None and depth >= self._max_depth:
            self._telemetry.for_operation(handler_id).debug(
                'Cascade depth limit {} reached, not cascading', self._max_depth
            )
            return None

        target = self.decide(handler_id)
        if target is None:
            return None

        return await self._call(handler_id, target, depth + 1)

    @staticmethod
    def depth_of(request: Request | None) -> int:
        if request is None:
            return 0

        try:
            return max(int(request.headers.get(CASCADE_DEPTH_HEADER, 0)), 0)
        except ValueError:
            return 0

    async def _call(self, source: str, target: str, depth: int) -> CascadeOutcome:
        log = self._telemetry.for_operation(source)
        url = self._registry.url_for(target, self._base_url)

        log.info('Cascading from {} to {} (depth {})', source, target, depth)
        start = time.perf_counter()

        try:
            response = await self._client.get(
                url,
                headers={CASCADE_DEPTH_HEADER: str(depth)},
                timeout=self._timeout,
            )

        except httpx.HTTPError as e:
            log.warning('Cascade call from {} to {} failed: {}', source, target, e)
            self._record(source, target, 'error', start)

            return CascadeOutcome(source, target, depth, error=str(e) or repr(e))

        log.info(
            'Cascade call from {} to {} returned {}',
            source,
            target,
            response.status_code,
        )
        outcome = CascadeOutcome(source, target, depth, response.status_code)
        self._record(
            source, target, 'success' if outcome.succeeded else 'failure', start
        )

        return outcome

    def _record(self, source: str, target: str, outcome: str, start: float) -> None:
        self._telemetry.cascade_calls.labels(source, target, outcome).inc()
        self._telemetry.cascade_duration.labels(source, target).observe(
            time.perf_counter() - start
        )
