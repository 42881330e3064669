from .bootstrap import configure_observability
from .telemetry import TRACER_NAME, TelemetryContext

__all__ = ['TRACER_NAME', 'TelemetryContext', 'configure_observability']
