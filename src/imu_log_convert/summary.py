from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from .core.errors import ImuLogWarning, InsufficientDataWarning, OutOfRangeCountWarning, OverrunAdvisory
from .core.models import GYRO_AXES, LatencyStats, LogStream, LogSummary


MICROSECONDS_PER_SECOND = 1e6

# Divisor used for the average frame latency.
AVERAGE_BY_PAIRS = "pairs"
AVERAGE_BY_READINGS = "readings"


def convert_raw_to_rad_per_sec(raw, sensitivity: float):
    # raw counts -> deg/s -> rad/s
    values = (np.asarray(raw, dtype=float) / float(sensitivity)) * (np.pi / 180.0)
    if values.ndim == 0:
        return float(values)
    return values


def valid_timestamps(stream: LogStream) -> np.ndarray:
    # Signed so that a wrapped counter shows up as a negative frame latency.
    parts = [block.valid_readings["timestamp"].astype(np.int64) for block in stream.blocks]
    if not parts:
        return np.empty(0, dtype=np.int64)
    return np.concatenate(parts)


def latency_stats(timestamps: np.ndarray, average_by: str = AVERAGE_BY_PAIRS) -> LatencyStats:
    """Frame latency statistics over consecutive valid timestamps (microseconds).

    ``average_by`` selects the divisor of the latency sum: the number of
    consecutive pairs, or the number of readings as older converter output
    did. No wrap correction is applied to the 32-bit counter.
    """
    if average_by not in (AVERAGE_BY_PAIRS, AVERAGE_BY_READINGS):
        raise ValueError(f"Unknown latency average mode: {average_by}")

    timestamps = np.asarray(timestamps, dtype=np.int64)
    count = int(timestamps.size)
    if count < 2:
        nan = float("nan")
        return LatencyStats(readings=count, pairs=0, total_us=0.0, min_us=nan, max_us=nan, average_us=nan)

    deltas = np.diff(timestamps)
    total = float(deltas.sum())
    divisor = deltas.size if average_by == AVERAGE_BY_PAIRS else count
    return LatencyStats(
        readings=count,
        pairs=int(deltas.size),
        total_us=total,
        min_us=float(deltas.min()),
        max_us=float(deltas.max()),
        average_us=total / divisor,
    )


def frequency_from_latency(average_us: float) -> float:
    # Zero latency gives inf and undefined latency gives nan; both mean "no rate".
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(MICROSECONDS_PER_SECOND) / np.float64(average_us))


def summarize(stream: LogStream, average_by: str = AVERAGE_BY_PAIRS) -> LogSummary:
    """Aggregate counts, frame latency and sample rate for a decoded log.

    Fixed-rate formats report their declared rate as the frequency. Fewer than
    two valid readings still add ``InsufficientDataWarning`` for them, since
    the latency statistics are undefined either way.
    """
    warnings: List[ImuLogWarning] = []
    for index, block in enumerate(stream.blocks):
        if not block.count_in_range:
            warnings.append(OutOfRangeCountWarning(index, block.valid_count, block.capacity))

    timestamps = valid_timestamps(stream)
    latency = latency_stats(timestamps, average_by=average_by)
    total_valid = int(timestamps.size)
    total_overruns = sum(block.overrun_count for block in stream.blocks)

    fixed_rate = stream.fmt.fixed_rate_hz
    if fixed_rate is not None:
        frequency = float(fixed_rate)
        frequency_source = "fixed"
    else:
        frequency = frequency_from_latency(latency.average_us)
        frequency_source = "timestamps"

    if total_valid < 2:
        warnings.append(InsufficientDataWarning(total_valid))

    if total_overruns > 0:
        warnings.append(OverrunAdvisory(total_overruns))

    return LogSummary(
        block_count=len(stream.blocks),
        total_valid=total_valid,
        total_overruns=total_overruns,
        latency=latency,
        frequency=frequency,
        frequency_source=frequency_source,
        warnings=warnings,
    )


def angular_velocity_blocks(stream: LogStream, sensitivity: Optional[float] = None) -> List[List[float]]:
    # One flat [gx, gy, gz, gx, gy, gz, ...] list per block, valid readings only.
    sensitivity = stream.fmt.sensitivity if sensitivity is None else sensitivity
    out = []
    for block in stream.blocks:
        valid = block.valid_readings
        gyro = np.column_stack([valid[axis] for axis in GYRO_AXES])
        out.append(convert_raw_to_rad_per_sec(gyro, sensitivity).reshape(-1).tolist())
    return out


def _json_number(value: float) -> Optional[float]:
    return float(value) if np.isfinite(value) else None


def build_document(
    stream: LogStream, summary: LogSummary, sensitivity: Optional[float] = None
) -> Dict[str, Any]:
    return {
        "frequency": _json_number(summary.frequency),
        "angular_velocity_rad_per_sec": angular_velocity_blocks(stream, sensitivity),
    }
