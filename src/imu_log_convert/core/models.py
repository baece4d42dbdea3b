from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .errors import ImuLogWarning


GYRO_AXES = ["gx", "gy", "gz"]
ACCEL_AXES = ["ax", "ay", "az"]

# FS_SEL=3: +/-2000 deg/s full scale, 16.4 LSB per deg/s.
DEFAULT_SENSITIVITY = 16.4


@dataclass(frozen=True)
class LogFormat:
    name: str
    capacity: int
    pad_bytes: int
    include_accel: bool = False
    fixed_rate_hz: Optional[float] = None
    sensitivity: float = DEFAULT_SENSITIVITY
    description: str = ""

    @property
    def axes(self) -> List[str]:
        if self.include_accel:
            return ACCEL_AXES + GYRO_AXES
        return list(GYRO_AXES)

    @property
    def reading_size(self) -> int:
        # u32 timestamp followed by one i16 per axis.
        return 4 + 2 * len(self.axes)

    @property
    def block_size(self) -> int:
        # u16 count + u16 overruns + readings + pad.
        return 4 + self.capacity * self.reading_size + self.pad_bytes


@dataclass(frozen=True, eq=False)
class LogBlock:
    valid_count: int
    overrun_count: int
    readings: np.ndarray

    @property
    def capacity(self) -> int:
        return int(self.readings.shape[0])

    @property
    def count_in_range(self) -> bool:
        return self.valid_count <= self.capacity

    @property
    def clamped_count(self) -> int:
        return max(0, min(self.valid_count, self.capacity))

    @property
    def valid_readings(self) -> np.ndarray:
        # Slots past the valid count hold stale logger buffer contents.
        return self.readings[: self.clamped_count]


@dataclass(frozen=True, eq=False)
class LogStream:
    fmt: LogFormat
    blocks: Tuple[LogBlock, ...]

    def __len__(self) -> int:
        return len(self.blocks)


@dataclass(frozen=True)
class LatencyStats:
    readings: int
    pairs: int
    total_us: float
    min_us: float
    max_us: float
    average_us: float


@dataclass(frozen=True)
class LogSummary:
    block_count: int
    total_valid: int
    total_overruns: int
    latency: LatencyStats
    frequency: float
    frequency_source: str
    warnings: List[ImuLogWarning] = field(default_factory=list)

    @property
    def duration_s(self) -> float:
        if not np.isfinite(self.frequency) or self.frequency <= 0:
            return float("nan")
        return self.total_valid / self.frequency
