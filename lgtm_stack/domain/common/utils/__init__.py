from .datetime import DateTimeUtils
from .string import StringUtils

__all__ = [
    'DateTimeUtils',
    'StringUtils',
]
