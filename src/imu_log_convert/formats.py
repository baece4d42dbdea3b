from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from .core.errors import TruncatedBlockError
from .core.models import DEFAULT_SENSITIVITY, LogFormat


# Gyro full-scale range (deg/s) -> sensitivity (LSB per deg/s).
GYRO_SENSITIVITY: Dict[int, float] = {
    250: 131.0,
    500: 65.5,
    1000: 32.8,
    2000: DEFAULT_SENSITIVITY,
}

DEFAULT_FORMAT = "A"

FORMATS: List[LogFormat] = []


def register_format(fmt: LogFormat) -> LogFormat:
    if _find_by_name(fmt.name) is not None:
        raise ValueError(f"Log format already registered: {fmt.name}")
    FORMATS.append(fmt)
    return fmt


def _find_by_name(name: str) -> Optional[LogFormat]:
    for fmt in FORMATS:
        if fmt.name.lower() == name.lower():
            return fmt
    return None


def format_names() -> List[str]:
    return [fmt.name for fmt in FORMATS]


def get_format(name: str) -> LogFormat:
    match = _find_by_name(name)
    if match is None:
        known = ", ".join(sorted(format_names()))
        raise ValueError(f"Unknown log format '{name}'. Known: {known}")
    return match


def sensitivity_for_range(range_dps: int) -> float:
    try:
        return GYRO_SENSITIVITY[int(range_dps)]
    except KeyError:
        known = ", ".join(str(r) for r in sorted(GYRO_SENSITIVITY))
        raise ValueError(f"Unsupported gyro range {range_dps} deg/s. Known: {known}") from None


def reading_dtype(fmt: LogFormat) -> np.dtype:
    fields = [("timestamp", "<u4")]
    fields.extend((axis, "<i2") for axis in fmt.axes)
    return np.dtype(fields)


def block_dtype(fmt: LogFormat) -> np.dtype:
    # Explicit offsets and itemsize leave the trailing pad bytes unnamed.
    return np.dtype(
        {
            "names": ["count", "overruns", "readings"],
            "formats": ["<u2", "<u2", (reading_dtype(fmt), (fmt.capacity,))],
            "offsets": [0, 2, 4],
            "itemsize": fmt.block_size,
        }
    )


def sniff_format(buffer: bytes, fmt: LogFormat) -> float:
    # Fixed-rate variants share a layout with derived-rate ones; only use them when named.
    if fmt.fixed_rate_hz is not None:
        return 0.0
    if not buffer or len(buffer) % fmt.block_size:
        return 0.0

    raw = np.frombuffer(buffer, dtype=block_dtype(fmt))
    counts = raw["count"].astype(np.int64)
    score = float(np.mean(counts <= fmt.capacity))

    # Valid timestamps should increase within a block when the layout is right.
    ordered = 0
    checked = 0
    for count, readings in zip(counts, raw["readings"]):
        stamps = readings["timestamp"][: min(int(count), fmt.capacity)].astype(np.int64)
        if stamps.size > 1:
            checked += stamps.size - 1
            ordered += int(np.count_nonzero(np.diff(stamps) > 0))
    if checked:
        score = 0.5 * score + 0.5 * (ordered / checked)
    return score


def _layout(fmt: LogFormat) -> tuple:
    return (fmt.capacity, fmt.pad_bytes, tuple(fmt.axes))


def resolve_format(buffer: bytes, forced: Optional[str] = None) -> LogFormat:
    if forced and forced.lower() != "auto":
        return get_format(forced)
    if not buffer:
        return get_format(DEFAULT_FORMAT)

    sizes = sorted({fmt.block_size for fmt in FORMATS})
    if not any(len(buffer) % size == 0 for size in sizes):
        raise TruncatedBlockError(len(buffer), sizes[0])

    scores = [(fmt, sniff_format(buffer, fmt)) for fmt in FORMATS]
    best = None
    best_score = 0.0
    for fmt, score in scores:
        if score > best_score:
            best = fmt
            best_score = score

    if best is None:
        known = ", ".join(sorted(format_names()))
        raise ValueError(
            f"Unable to detect log format for a {len(buffer)} byte buffer. "
            f"Pass a format explicitly. Known: {known}"
        )

    # Equal scores from different layouts mean the timestamps could not tell them apart.
    rivals = [
        fmt.name
        for fmt, score in scores
        if score == best_score and _layout(fmt) != _layout(best)
    ]
    if rivals:
        names = ", ".join([best.name] + rivals)
        raise ValueError(
            f"Log format is ambiguous for this buffer (matches {names}); pass --format."
        )
    return best


FORMAT_A = register_format(
    LogFormat(
        name="A",
        capacity=50,
        pad_bytes=8,
        description="gyro only, 50 readings per block",
    )
)

FORMAT_B = register_format(
    LogFormat(
        name="B",
        capacity=31,
        pad_bytes=12,
        include_accel=True,
        fixed_rate_hz=500.0,
        description="accel + gyro, 31 readings per block, fixed 500 Hz",
    )
)

FORMAT_C = register_format(
    LogFormat(
        name="C",
        capacity=31,
        pad_bytes=12,
        include_accel=True,
        description="accel + gyro, 31 readings per block",
    )
)
