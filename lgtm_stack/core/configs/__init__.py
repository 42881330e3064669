from .api import APIConfiguration
from .log import LogConfiguration
from .observability import (
    LokiConfiguration,
    ObservabilityConfiguration,
    TraceTargetConfiguration,
)
from .traffic import CascadeConfiguration, LoadTestConfiguration

__all__ = [
    'APIConfiguration',
    'CascadeConfiguration',
    'LoadTestConfiguration',
    'LogConfiguration',
    'LokiConfiguration',
    'ObservabilityConfiguration',
    'TraceTargetConfiguration',
]
