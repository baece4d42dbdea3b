from .errors import (
    ImuLogError,
    ImuLogWarning,
    InputReadError,
    InsufficientDataWarning,
    OutOfRangeCountWarning,
    OutputWriteError,
    OverrunAdvisory,
    TruncatedBlockError,
)
from .models import LatencyStats, LogBlock, LogFormat, LogStream, LogSummary

__all__ = [
    "ImuLogError",
    "ImuLogWarning",
    "InputReadError",
    "InsufficientDataWarning",
    "OutOfRangeCountWarning",
    "OutputWriteError",
    "OverrunAdvisory",
    "TruncatedBlockError",
    "LatencyStats",
    "LogBlock",
    "LogFormat",
    "LogStream",
    "LogSummary",
]
