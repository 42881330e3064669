from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from lgtm_stack.core.paths import REPORTS_PATH, ROOT_PATH


class CascadeConfiguration(BaseSettings):
    """Cascading endpoint calls."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='CASCADE_',
        extra='ignore',
    )

    enabled: bool = Field(True, description='Allow handlers to call each other')
    timeout: float = Field(
        30.0, gt=0, description='Timeout in seconds for a single cascade call'
    )
    max_depth: int | None = Field(
        None,
        ge=0,
        description=(
            'Stop cascading once a request chain reaches this many hops. '
            'Unbounded when unset.'
        ),
    )


class LoadTestConfiguration(BaseSettings):
    """Synthetic load run started once the service is serving."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=ROOT_PATH / '.env',
        env_file_encoding='utf-8',
        env_prefix='LOAD_TEST_',
        extra='ignore',
    )

    enabled: bool = Field(True, description='Run the load test after start-up')
    scenario_name: str = Field('api_load_test', description='Report name')
    rate: float = Field(10.0, gt=0, description='Requests injected per second')
    duration: float = Field(8.0, gt=0, description='Run duration in seconds')
    request_timeout: float = Field(
        30.0, gt=0, description='Timeout in seconds for a single load request'
    )
    readiness_timeout: float = Field(
        30.0,
        gt=0,
        description='Seconds to wait for the service to answer before giving up',
    )
    report_dir: str = Field(
        str(REPORTS_PATH), description='Folder receiving load test reports'
    )
