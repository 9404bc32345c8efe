"""
CLI: python -m timelens analyze <video> | modes
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from shared.config import settings
from shared.logger import setup_logging
from shared.telemetry import setup_telemetry

from .chart import TimeSeriesChart
from .errors import TimelensError
from .functions import FUNCTIONS
from .pipeline import get_backend, run_pipeline
from .prompts_loader import list_modes


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Upload a video, ask a timecoded question and chart the answer.",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level.")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    analyze = subparsers.add_parser("analyze", help="Upload a video and run one structured query")
    analyze.add_argument("video", type=Path, help="Path to the video file.")
    analyze.add_argument("--mode", help="Analysis mode from the prompt catalog (see 'modes').")
    analyze.add_argument("--query", default="", help="Mode query, e.g. chart instructions or a preset name.")
    analyze.add_argument("--prompt", help="Free-form prompt (instead of --mode).")
    analyze.add_argument(
        "--function",
        choices=sorted(FUNCTIONS),
        help="Function the model must call (defaults to the mode's function).",
    )
    analyze.add_argument("--backend", choices=["gemini", "dummy"], default=None, help="Inference backend.")
    analyze.add_argument("--mime-type", default=None, help="Override the detected MIME type.")
    analyze.add_argument(
        "--poll-interval", type=float, default=settings.poll_interval_sec, help="Seconds between status checks."
    )
    analyze.add_argument(
        "--max-attempts", type=int, default=settings.poll_max_attempts, help="Status checks before giving up."
    )
    analyze.add_argument("--out", "-o", type=Path, default=None, help="Write result JSON here instead of stdout.")
    analyze.add_argument("--svg", type=Path, default=None, help="Also write the chart as SVG.")
    analyze.add_argument("--width", type=float, default=800, help="Chart width (px).")
    analyze.add_argument("--height", type=float, default=400, help="Chart height (px).")
    analyze.add_argument("--y-label", default="", help="Chart y-axis title.")

    subparsers.add_parser("modes", help="List analysis modes")

    args = parser.parse_args(argv)
    setup_logging(args.log_level, settings.log_json)

    if args.command == "analyze":
        return _run_analyze(args)
    if args.command == "modes":
        return _run_modes()
    return 1


def _run_modes() -> int:
    for mode in list_modes():
        print(mode)
    return 0


def _run_analyze(args) -> int:
    if not args.video.exists():
        print(f"Error: video not found: {args.video}", file=sys.stderr)
        return 1
    if not args.mode and not args.prompt:
        print("Error: one of --mode or --prompt is required", file=sys.stderr)
        return 2

    setup_telemetry(settings.otel_service_name)

    try:
        outcome = asyncio.run(
            run_pipeline(
                args.video,
                mode=args.mode,
                query=args.query,
                prompt=args.prompt,
                function=args.function,
                backend=get_backend(args.backend),
                mime_type=args.mime_type,
                backoff=args.poll_interval,
                max_attempts=args.max_attempts,
            )
        )
    except (TimelensError, KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    payload = {
        "asset": outcome.asset.model_dump(mode="json"),
        "function": outcome.result.function_name,
        "entries": [
            {"time": e.time, "value": e.value, **e.attributes} for e in outcome.result.entries
        ],
        "elapsed_sec": outcome.elapsed_sec,
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(text + "\n", encoding="utf-8")
        print(f"Output: {args.out}")
    else:
        print(text)

    if args.svg:
        try:
            samples = outcome.chart_samples()
        except ValueError as e:
            print(f"Error: result is not chartable: {e}", file=sys.stderr)
            return 1
        chart = TimeSeriesChart(
            on_seek=lambda s: None,
            y_label=args.y_label,
            samples=samples,
            width=args.width,
            height=args.height,
        )
        args.svg.parent.mkdir(parents=True, exist_ok=True)
        args.svg.write_text(chart.render().to_svg(), encoding="utf-8")
        print(f"Chart: {args.svg}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
