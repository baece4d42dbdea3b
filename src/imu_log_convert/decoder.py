"""
Block decoder for fixed-layout IMU logger files.

Each block on disk is laid out little-endian as::

    u16 count                 valid readings in this block
    u16 overruns              readings dropped before this flush
    reading[capacity]         always fully present, even past ``count``
    u8 pad[pad_bytes]         reserved, skipped

and each reading as ``u32 timestamp`` (microseconds) followed by one ``i16``
per axis: ``ax, ay, az`` for variants that carry accel, then ``gx, gy, gz``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import numpy as np

from .core.errors import InputReadError, TruncatedBlockError
from .core.models import LogBlock, LogFormat, LogStream
from .formats import block_dtype, resolve_format


def read_log_file(path: str | os.PathLike) -> bytes:
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise InputReadError(path, exc.strerror or str(exc)) from exc


def decode_blocks(buffer: bytes, fmt: LogFormat) -> LogStream:
    """Decode a whole log buffer into blocks.

    Args:
        buffer: Raw file contents.
        fmt: Layout of the blocks in ``buffer``.

    Returns:
        ``LogStream`` holding every block in file order. Block counts are
        passed through as stored; ``LogBlock.valid_readings`` clamps them.

    Raises:
        TruncatedBlockError: If the buffer does not hold a whole number of
            blocks.
    """
    dtype = block_dtype(fmt)
    if len(buffer) % dtype.itemsize:
        raise TruncatedBlockError(len(buffer), dtype.itemsize)

    raw = np.frombuffer(buffer, dtype=dtype)
    raw.flags.writeable = False

    blocks = tuple(
        LogBlock(valid_count=int(count), overrun_count=int(overruns), readings=readings)
        for count, overruns, readings in zip(raw["count"], raw["overruns"], raw["readings"])
    )
    return LogStream(fmt=fmt, blocks=blocks)


def load_log(path: str | os.PathLike, fmt: Optional[str] = None) -> LogStream:
    buffer = read_log_file(path)
    return decode_blocks(buffer, resolve_format(buffer, forced=fmt))
