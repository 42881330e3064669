from functools import lru_cache
from typing import Literal
from zoneinfo import available_timezones

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lgtm_stack import __version__
from lgtm_stack.core.paths import ROOT_PATH

from .configs import (
    APIConfiguration,
    CascadeConfiguration,
    LoadTestConfiguration,
    LogConfiguration,
    LokiConfiguration,
    ObservabilityConfiguration,
    TraceTargetConfiguration,
)


# noinspection PyNestedDecorators,PyArgumentList
class Configuration(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True,
    )

    app_name: str = Field('LGTM Stack', description='Application name')
    app_description: str = Field(
        'Endpoints that emit logs, metrics and traces for an LGTM stack',
        description='Application description',
    )
    app_version: str = __version__
    app_environment: Literal['test', 'local', 'dev', 'qa', 'prod'] = Field(
        'local', description='Application environment', validation_alias='ENVIRONMENT'
    )
    app_timezone: str = Field(
        'UTC', description='Application timezone', validation_alias='TZ'
    )
    open_browser: bool = Field(
        True,
        description='Open the API docs in a browser once the service is up',
        validation_alias='OPEN_BROWSER',
    )

    api: APIConfiguration = Field(default_factory=APIConfiguration)
    log: LogConfiguration = Field(default_factory=LogConfiguration)
    observability: ObservabilityConfiguration = Field(
        default_factory=ObservabilityConfiguration
    )
    loki: LokiConfiguration = Field(default_factory=LokiConfiguration)
    trace_target: TraceTargetConfiguration = Field(
        default_factory=TraceTargetConfiguration
    )
    cascade: CascadeConfiguration = Field(default_factory=CascadeConfiguration)
    load_test: LoadTestConfiguration = Field(default_factory=LoadTestConfiguration)

    @property
    def app_debug(self) -> bool:
        return self.app_environment in ['test', 'local', 'dev']

    @property
    def docs_enabled(self) -> bool:
        return self.app_environment != 'prod'

    @field_validator('app_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in available_timezones():
            msg = f'not a valid timezone: {v}'
            raise ValueError(msg)
        return v


# noinspection PyArgumentList
@lru_cache
def get_config() -> Configuration:
    """
    Get cached application settings.
    """
    return Configuration()
