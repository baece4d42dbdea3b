import struct

import numpy as np
import pytest

from imu_log_convert.core.errors import InputReadError, TruncatedBlockError
from imu_log_convert.decoder import decode_blocks, load_log, read_log_file
from imu_log_convert.formats import FORMAT_A, FORMAT_C


def _pack_block_a(count: int, overruns: int, readings: list[tuple], pad: bytes = b"\xaa" * 8) -> bytes:
    body = struct.pack("<HH", count, overruns)
    for reading in readings:
        body += struct.pack("<Ihhh", *reading)
    # Unused slots carry whatever the logger buffer held.
    body += b"\xff" * (10 * (50 - len(readings)))
    return body + pad


def test_decode_block_a_byte_layout():
    buffer = _pack_block_a(2, 3, [(1000, 164, 0, -164), (3000, 1, 2, 3)])
    assert len(buffer) == FORMAT_A.block_size

    stream = decode_blocks(buffer, FORMAT_A)
    assert len(stream) == 1
    block = stream.blocks[0]
    assert block.valid_count == 2
    assert block.overrun_count == 3
    assert block.readings.shape == (50,)

    valid = block.valid_readings
    assert valid["timestamp"].tolist() == [1000, 3000]
    assert valid["gx"].tolist() == [164, 1]
    assert valid["gz"].tolist() == [-164, 3]
    # Stale slot decodes as -1 / 0xFFFFFFFF but stays outside the valid slice.
    assert block.readings[2]["gx"] == -1
    assert block.readings[2]["timestamp"] == 0xFFFFFFFF


def test_decode_block_with_accel_field_order():
    body = struct.pack("<HH", 1, 0)
    body += struct.pack("<Ihhhhhh", 42, 10, 20, 30, -1, -2, -3)
    body += b"\x00" * (16 * 30) + b"\x00" * 12

    stream = decode_blocks(body, FORMAT_C)
    reading = stream.blocks[0].valid_readings[0]
    assert reading["timestamp"] == 42
    assert (reading["ax"], reading["ay"], reading["az"]) == (10, 20, 30)
    assert (reading["gx"], reading["gy"], reading["gz"]) == (-1, -2, -3)


def test_decode_multiple_blocks_in_order(build_log, spaced_readings):
    buffer = build_log(
        FORMAT_A,
        [
            {"readings": spaced_readings(FORMAT_A, 3, 100), "overruns": 1},
            {"readings": spaced_readings(FORMAT_A, 2, 100, start_us=300), "overruns": 4},
        ],
    )
    stream = decode_blocks(buffer, FORMAT_A)
    assert [b.valid_count for b in stream.blocks] == [3, 2]
    assert [b.overrun_count for b in stream.blocks] == [1, 4]
    assert stream.blocks[1].valid_readings["timestamp"].tolist() == [300, 400]


def test_decode_empty_buffer():
    stream = decode_blocks(b"", FORMAT_A)
    assert len(stream) == 0


def test_decode_partial_block_raises(build_log, spaced_readings):
    buffer = build_log(FORMAT_A, [{"readings": spaced_readings(FORMAT_A, 5, 2000)}])
    with pytest.raises(TruncatedBlockError) as excinfo:
        decode_blocks(buffer + b"\x00\x01\x02", FORMAT_A)
    assert excinfo.value.buffer_size == 515
    assert excinfo.value.block_size == 512

    with pytest.raises(ValueError):
        decode_blocks(buffer[:100], FORMAT_A)


def test_decode_is_deterministic(build_log, spaced_readings):
    buffer = build_log(FORMAT_C, [{"readings": spaced_readings(FORMAT_C, 31, 2000, gyro=(5, -5, 7))}] * 2)
    first = decode_blocks(buffer, FORMAT_C)
    second = decode_blocks(buffer, FORMAT_C)
    assert len(first) == len(second)
    for a, b in zip(first.blocks, second.blocks):
        assert a.valid_count == b.valid_count
        assert a.overrun_count == b.overrun_count
        assert np.array_equal(a.readings, b.readings)


def test_decode_passes_through_out_of_range_count(build_log, spaced_readings):
    buffer = build_log(FORMAT_A, [{"readings": spaced_readings(FORMAT_A, 50, 2000), "count": 60}])
    block = decode_blocks(buffer, FORMAT_A).blocks[0]
    assert block.valid_count == 60
    assert not block.count_in_range
    assert block.clamped_count == 50
    assert block.valid_readings.size == 50


def test_decoded_readings_are_read_only(build_log, spaced_readings):
    buffer = bytearray(build_log(FORMAT_A, [{"readings": spaced_readings(FORMAT_A, 2, 2000)}]))
    block = decode_blocks(buffer, FORMAT_A).blocks[0]
    with pytest.raises(ValueError):
        block.readings["gx"][0] = 1


def test_read_log_file_missing(tmp_path):
    with pytest.raises(InputReadError):
        read_log_file(tmp_path / "missing.bin")


def test_load_log_detects_format(tmp_path, build_log, spaced_readings):
    path = tmp_path / "imu.bin"
    path.write_bytes(build_log(FORMAT_C, [{"readings": spaced_readings(FORMAT_C, 31, 2000)}]))
    stream = load_log(path)
    assert stream.fmt is FORMAT_C
    assert stream.blocks[0].valid_count == 31
