from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from lgtm_stack.core.paths import ROOT_PATH


class ObservabilityConfiguration(BaseSettings):
    """Observability pillars (traces, metrics, logs) configuration."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='OBSERVABILITY_',
        extra='ignore',
    )

    enabled: bool = Field(True, description='Enable observability features')
    traces_endpoint: AnyUrl = Field(
        AnyUrl('http://localhost:4317'),
        description='OTLP gRPC endpoint used by trace exporter.',
    )
    tracing_sample_ratio: float = Field(
        1.0, ge=0.0, le=1.0, description='Tracing sample ratio (0.0 to 1.0)'
    )
    traces_to_console: bool = Field(False, description='Output traces to console')
    excluded_urls: str = Field(
        '/health/liveness,/metrics,/docs,/openapi.json',
        description='Comma-separated list of excluded URLs.',
    )


class LokiConfiguration(BaseSettings):
    """Loki backend targeted by the connectivity and direct logging endpoints."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='LOKI_',
        extra='ignore',
    )

    base_url: AnyUrl = Field(
        AnyUrl('http://localhost:3100'), description='Loki base URL'
    )
    timeout: float = Field(10.0, gt=0, description='Request timeout in seconds')
    direct_labels: dict[str, str] = Field(
        default={'app': 'lgtm-stack-test', 'test': 'direct'},
        description='Stream labels attached to directly pushed log lines',
    )

    @property
    def ready_url(self) -> str:
        return f'{str(self.base_url).rstrip("/")}/ready'

    @property
    def push_url(self) -> str:
        return f'{str(self.base_url).rstrip("/")}/loki/api/v1/push'


class TraceTargetConfiguration(BaseSettings):
    """External endpoint called inside the manual trace span."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='TRACE_TARGET_',
        extra='ignore',
    )

    url: AnyUrl = Field(
        AnyUrl('https://api.github.com/zen'),
        description='External URL requested by /trace-test',
    )
    timeout: float = Field(10.0, gt=0, description='Request timeout in seconds')
