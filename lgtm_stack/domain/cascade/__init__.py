from .simulator import (
    CASCADE_DEPTH_HEADER,
    DEFAULT_CASCADE_RULES,
    CascadeOutcome,
    CascadeRule,
    CascadeSimulator,
)

__all__ = [
    'CASCADE_DEPTH_HEADER',
    'DEFAULT_CASCADE_RULES',
    'CascadeOutcome',
    'CascadeRule',
    'CascadeSimulator',
]
