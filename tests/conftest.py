from __future__ import annotations

import shutil
import uuid
from pathlib import Path

import numpy as np
import pytest

from imu_log_convert.core.models import LogFormat
from imu_log_convert.formats import block_dtype


_BASE_TMP = Path("tests/py_tmp2")


@pytest.fixture
def tmp_path() -> Path:
    _BASE_TMP.mkdir(parents=True, exist_ok=True)
    path = _BASE_TMP / f"case_{uuid.uuid4().hex}"
    path.mkdir(parents=True, exist_ok=True)
    yield path
    shutil.rmtree(path, ignore_errors=True)


def _build_log(fmt: LogFormat, blocks: list[dict]) -> bytes:
    # Each block: {"readings": [tuple in field order], "count": n, "overruns": n}.
    data = np.zeros(len(blocks), dtype=block_dtype(fmt))
    for idx, block in enumerate(blocks):
        readings = block.get("readings", [])
        data["count"][idx] = block.get("count", len(readings))
        data["overruns"][idx] = block.get("overruns", 0)
        for slot, reading in enumerate(readings):
            data["readings"][idx, slot] = reading
    return data.tobytes()


@pytest.fixture
def build_log():
    return _build_log


def _evenly_spaced(fmt: LogFormat, n: int, step_us: int, start_us: int = 0, gyro=(0, 0, 0)) -> list[tuple]:
    accel = (0, 0, 2048) if fmt.include_accel else ()
    return [(start_us + i * step_us,) + accel + tuple(gyro) for i in range(n)]


@pytest.fixture
def spaced_readings():
    return _evenly_spaced
