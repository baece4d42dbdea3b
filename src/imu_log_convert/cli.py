from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from .core.models import LogFormat, LogSummary
from .decoder import decode_blocks, read_log_file
from .formats import GYRO_SENSITIVITY, format_names, resolve_format, sensitivity_for_range
from .io_out import resolve_output_path, write_document, write_readings_csv
from .summary import AVERAGE_BY_PAIRS, AVERAGE_BY_READINGS, build_document, summarize


def _status(message: str) -> None:
    print(message, flush=True)


def _color_line(width: int = 29, color_code: str = "\x1b[38;5;39m") -> str:
    # Thin colored divider for readability in terminal output.
    return f"{color_code}{'─' * width}\x1b[0m"


def _format_kv(rows: List[Tuple[str, str]]) -> str:
    # Tab-align key/value pairs.
    width = max(len(key) for key, _ in rows) if rows else 0
    return "\n".join(f"{key.ljust(width)}\t{value}" for key, value in rows)


def _format_rate(rate: float) -> str:
    if not np.isfinite(rate):
        return "unknown"
    return f"{rate:.2f} Hz"


def _format_us(value: float) -> str:
    if not np.isfinite(value):
        return "n/a"
    return f"{value:.1f} us"


def _format_seconds(value: float) -> str:
    if not np.isfinite(value):
        return "unknown"
    return f"{value:.2f} s"


def _resolve_sensitivity(fmt: LogFormat, gyro_range: Optional[int], sensitivity: Optional[float]) -> float:
    # Explicit sensitivity wins over a range lookup, which wins over the format default.
    if sensitivity is not None:
        if sensitivity <= 0:
            raise ValueError("Sensitivity must be > 0.")
        return float(sensitivity)
    if gyro_range is not None:
        return sensitivity_for_range(gyro_range)
    return fmt.sensitivity


def _summary_rows(fmt: LogFormat, summary: LogSummary, sensitivity: float) -> List[Tuple[str, str]]:
    latency = summary.latency
    return [
        ("Format", f"{fmt.name} ({fmt.description})"),
        ("Blocks", str(summary.block_count)),
        ("Valid readings", str(summary.total_valid)),
        ("Overruns", str(summary.total_overruns)),
        ("Length", _format_seconds(summary.duration_s)),
        ("Latency avg", _format_us(latency.average_us)),
        ("Latency min", _format_us(latency.min_us)),
        ("Latency max", _format_us(latency.max_us)),
        ("Frequency", f"{_format_rate(summary.frequency)} ({summary.frequency_source})"),
        ("Gyro sensitivity", f"{sensitivity:g} LSB/(deg/s)"),
    ]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Convert a binary IMU block log into angular velocity JSON.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("source", help="Path to binary log file")
    parser.add_argument(
        "destination",
        nargs="?",
        default=None,
        help="Output file or directory (name defaults to the source name, extension to .json)",
    )
    parser.add_argument(
        "--format",
        default="auto",
        choices=["auto"] + format_names(),
        help="Log format variant; auto never selects fixed-rate variants.",
    )
    parser.add_argument(
        "--gyro-range",
        type=int,
        choices=sorted(GYRO_SENSITIVITY),
        default=None,
        help="Gyro full-scale range in deg/s, selects the sensitivity.",
    )
    parser.add_argument(
        "--sensitivity",
        type=float,
        default=None,
        help="Gyro sensitivity in LSB per deg/s (overrides --gyro-range).",
    )
    parser.add_argument(
        "--legacy-average",
        action="store_true",
        help="Divide the latency sum by the reading count instead of the pair count.",
    )
    parser.add_argument("--write-csv", action="store_true", help="Also write <name>_readings.csv")
    parser.add_argument("--indent", type=int, default=None, help="JSON indent (compact when omitted)")

    args = parser.parse_args(argv)

    try:
        source = Path(args.source)
        _status(f"Reading raw data from {source}")
        buffer = read_log_file(source)

        fmt = resolve_format(buffer, forced=args.format)
        _status(f"Decoding {len(buffer)} bytes as format {fmt.name}")
        stream = decode_blocks(buffer, fmt)

        sensitivity = _resolve_sensitivity(fmt, args.gyro_range, args.sensitivity)
        average_by = AVERAGE_BY_READINGS if args.legacy_average else AVERAGE_BY_PAIRS
        summary = summarize(stream, average_by=average_by)

        print("")
        print("Log Summary")
        print(_color_line())
        print(_format_kv(_summary_rows(fmt, summary, sensitivity)))
        print("")

        for warning in summary.warnings:
            print(f"Warning: {warning}")

        document = build_document(stream, summary, sensitivity)
        out_path = resolve_output_path(source, args.destination)
        write_document(out_path, document, indent=args.indent)
        print(f"Successfully written to {out_path}")

        if args.write_csv:
            csv_path = out_path.with_name(f"{out_path.stem}_readings.csv")
            write_readings_csv(csv_path, stream, sensitivity)
            print(f"Wrote {csv_path}")

    except Exception as exc:
        raise SystemExit(f"Error: {exc}") from exc


if __name__ == "__main__":
    main()
