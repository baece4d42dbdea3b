from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .core.errors import OutputWriteError
from .core.models import GYRO_AXES, LogStream
from .formats import reading_dtype
from .summary import convert_raw_to_rad_per_sec


def resolve_output_path(source: str | os.PathLike, destination: Optional[str] = None) -> Path:
    # Missing directory, name or extension fall back to cwd, the source name and ".json".
    source = Path(source)
    if not destination:
        return Path(f"{source.stem}.json")

    dst = Path(destination)
    if str(destination).endswith(("/", os.sep)) or dst.is_dir():
        return dst / f"{source.stem}.json"
    name = dst.stem or source.stem
    ext = dst.suffix or ".json"
    return dst.parent / f"{name}{ext}"


def write_document(path: Path, document: Dict[str, Any], indent: Optional[int] = None) -> None:
    # Overwrite in one pass; the handle is flushed and closed before returning.
    try:
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=indent, allow_nan=False)
            handle.flush()
            os.fsync(handle.fileno())
    except OSError as exc:
        raise OutputWriteError(path, exc.strerror or str(exc)) from exc


def _valid_table(stream: LogStream) -> tuple[np.ndarray, np.ndarray]:
    valid = [block.valid_readings for block in stream.blocks]
    sizes = np.array([v.size for v in valid], dtype=int)
    block_index = np.repeat(np.arange(len(valid)), sizes)
    if not valid:
        return block_index, np.empty(0, dtype=reading_dtype(stream.fmt))
    return block_index, np.concatenate(valid)


def write_readings_csv(path: Path, stream: LogStream, sensitivity: Optional[float] = None) -> None:
    # One row per valid reading; raw counts next to converted gyro values.
    sensitivity = stream.fmt.sensitivity if sensitivity is None else sensitivity
    block_index, readings = _valid_table(stream)

    data = {
        "block": block_index.astype(int),
        "timestamp_us": readings["timestamp"].astype(np.int64),
    }
    for axis in stream.fmt.axes:
        data[f"{axis}_raw"] = readings[axis].astype(int)
    for axis in GYRO_AXES:
        data[f"{axis}_rad_s"] = convert_raw_to_rad_per_sec(readings[axis], sensitivity)

    df = pd.DataFrame(data)
    try:
        df.to_csv(path, index=False)
    except OSError as exc:
        raise OutputWriteError(path, exc.strerror or str(exc)) from exc
