from __future__ import annotations

from pathlib import Path


class ImuLogError(Exception):
    """Base class for failures that abort a conversion run."""


class InputReadError(ImuLogError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to read log {path}: {reason}")
        self.path = path


class TruncatedBlockError(ImuLogError, ValueError):
    def __init__(self, buffer_size: int, block_size: int) -> None:
        remainder = buffer_size % block_size
        super().__init__(
            f"Log size {buffer_size} bytes is not a multiple of the {block_size} byte block size "
            f"({remainder} trailing bytes)."
        )
        self.buffer_size = buffer_size
        self.block_size = block_size


class OutputWriteError(ImuLogError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to write {path}: {reason}")
        self.path = path


class ImuLogWarning(UserWarning):
    """Base class for conditions reported alongside a successful run."""


class OutOfRangeCountWarning(ImuLogWarning):
    def __init__(self, block_index: int, valid_count: int, capacity: int) -> None:
        super().__init__(
            f"Block {block_index} reports {valid_count} readings but holds at most {capacity}; "
            f"clamping to {capacity}. The block is corrupt or the log format is wrong."
        )
        self.block_index = block_index
        self.valid_count = valid_count
        self.capacity = capacity


class InsufficientDataWarning(ImuLogWarning):
    def __init__(self, total_valid: int) -> None:
        super().__init__(
            f"Only {total_valid} valid reading(s); frame latency statistics are undefined."
        )
        self.total_valid = total_valid


class OverrunAdvisory(ImuLogWarning):
    def __init__(self, total_overruns: int) -> None:
        super().__init__(f"{total_overruns} overruns detected. Check logger configuration.")
        self.total_overruns = total_overruns
