from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from imu_log_convert.formats import block_dtype, format_names, get_format


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Write a synthetic binary IMU block log for manual end-to-end runs.",
    )
    parser.add_argument("--out", required=True, help="Output .bin path")
    parser.add_argument("--format", default="A", choices=format_names(), help="Log format variant")
    parser.add_argument("--blocks", type=int, default=20, help="Number of blocks to write")
    parser.add_argument("--rate-hz", type=float, default=500.0, help="Sample rate used for timestamps")
    parser.add_argument("--overruns", type=int, default=0, help="Overruns recorded on the last block")
    args = parser.parse_args()

    fmt = get_format(args.format)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    n = args.blocks * fmt.capacity
    step_us = int(round(1e6 / args.rate_hz))
    timestamps = (np.arange(n, dtype=np.int64) * step_us) % (1 << 32)
    # Slow rotation about z at 1 Hz, 50 deg/s peak, in raw counts.
    phase = 2.0 * np.pi * timestamps / 1e6
    gz = np.round(50.0 * fmt.sensitivity * np.sin(phase)).astype(np.int16)

    data = np.zeros(args.blocks, dtype=block_dtype(fmt))
    data["count"] = fmt.capacity
    if args.blocks:
        data["overruns"][-1] = args.overruns
    shape = (args.blocks, fmt.capacity)
    readings = data["readings"]
    readings["timestamp"] = timestamps.reshape(shape)
    readings["gz"] = gz.reshape(shape)
    if fmt.include_accel:
        # 1 g on z at +/-16 g full scale.
        readings["az"] = 2048

    out_path.write_bytes(data.tobytes())
    print(f"Wrote log: {out_path}")
    print(f"Format: {fmt.name}, blocks: {args.blocks}, readings: {n}")


if __name__ == "__main__":
    main()
