"""
ToneCoach command-line entry point.

Usage::

    tonecoach record            # live transcript + NVC feedback in the terminal
    tonecoach serve             # run the transcription/analysis server
    tonecoach devices           # list microphones

Press Ctrl+C to stop a recording.
"""

import argparse
import asyncio
import logging
import sys
from collections import Counter

from src.core.config import get_settings
from src.core.exceptions import ToneCoachError
from src.core.models import AnalysisEntry, Rating, Speaker

logger = logging.getLogger(__name__)

_RATING_LABELS = {
    Rating.good: "GOOD",
    Rating.medium: "MEDIUM",
    Rating.bad: "BAD",
}


class ConsoleView:
    """Prints the conversation and its ratings as they arrive."""

    def __init__(self, stream=None, error_stream=None) -> None:
        self._out = stream or sys.stdout
        self._err = error_stream or sys.stderr

    def on_transcript(self, text: str, speaker: Speaker) -> None:
        print(f"[Speaker {int(speaker)}] {text.strip()}", file=self._out, flush=True)

    def on_analysis(self, entry: AnalysisEntry) -> None:
        label = _RATING_LABELS[entry.rating]
        print(f"    #{entry.utterance_index + 1} {label}: {entry.feedback}", file=self._out, flush=True)

    def on_notice(self, exc: ToneCoachError) -> None:
        print(f"  ! {exc.detail}", file=self._err, flush=True)

    def summary(self, analyses: tuple[AnalysisEntry, ...], utterance_count: int) -> None:
        counts = Counter(entry.rating for entry in analyses)
        breakdown = ", ".join(f"{counts.get(r, 0)} {r.value}" for r in Rating)
        print(
            f"\nSession ended: {utterance_count} utterances, {len(analyses)} rated ({breakdown})",
            file=self._out,
        )


async def _record(settings) -> int:
    from src.services.session import create_controller

    view = ConsoleView()
    controller = create_controller(
        settings,
        on_transcript=view.on_transcript,
        on_analysis=view.on_analysis,
        on_notice=view.on_notice,
    )
    try:
        try:
            await controller.start()
        except ToneCoachError as exc:
            print(exc.detail, file=sys.stderr)
            return 1
        print("Recording... press Ctrl+C to stop.", flush=True)
        await asyncio.Event().wait()
    finally:
        await controller.aclose()
        view.summary(controller.analyses, len(controller.utterances))
    return 0


def _serve(settings, reload: bool) -> int:
    import uvicorn

    uvicorn.run(
        "src.api.app:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _devices() -> int:
    from src.services.audio.guard import list_input_devices

    try:
        devices = list_input_devices()
    except ToneCoachError as exc:
        print(exc.detail, file=sys.stderr)
        return 1
    if not devices:
        print("No input devices found.")
        return 1
    for device in devices:
        print(
            f"{device['index']:>3}  {device['name']}  "
            f"({device['channels']} ch, {device['default_samplerate']:.0f} Hz)"
        )
    return 0


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tonecoach", description=__doc__.split("\n\n")[0].strip())
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    record = sub.add_parser("record", help="Record and coach a live conversation")
    record.add_argument("--api-url", default=None, help="Server base URL")
    record.add_argument("--interval-ms", type=_positive_int, default=None, help="Chunk interval in milliseconds")
    record.add_argument("--device", default=None, help="Input device index or name")

    serve = sub.add_parser("serve", help="Run the transcription/analysis server")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    sub.add_parser("devices", help="List audio input devices")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    overrides: dict = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.command == "record":
        if args.api_url:
            overrides["api_base_url"] = args.api_url
        if args.interval_ms is not None:
            overrides["chunk_interval_ms"] = args.interval_ms
        if args.device is not None:
            overrides["input_device"] = args.device
    if overrides:
        settings = settings.model_copy(update=overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "record":
        try:
            return asyncio.run(_record(settings))
        except KeyboardInterrupt:
            return 0
    if args.command == "serve":
        return _serve(settings, args.reload)
    return _devices()


if __name__ == "__main__":
    sys.exit(main())
