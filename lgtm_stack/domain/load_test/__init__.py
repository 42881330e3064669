from .injector import LoadInjector
from .models import (
    LOAD_TEST_ENDPOINTS,
    LoadTestReport,
    LoadTestResult,
    LoadTestScenario,
    build_scenarios,
)
from .report import write_report

__all__ = [
    'LOAD_TEST_ENDPOINTS',
    'LoadInjector',
    'LoadTestReport',
    'LoadTestResult',
    'LoadTestScenario',
    'build_scenarios',
    'write_report',
]
