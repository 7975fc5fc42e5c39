"""Command-line interface for gfxtrace.

Builds a trace draft from the remembered defaults and command-line
overrides, checks it, and runs the capture through the external tracer.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

MEC_WARNING = (
    "Mid-execution capture of OpenGL ES is experimental and may produce "
    "an incomplete trace."
)
PCS_WARNING = (
    "Pre-compiled shaders are enabled; the application may skip shader "
    "compilation and the trace may not replay."
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="gfxtrace",
        description="Capture graphics traces from Android devices and desktop applications",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/gfxtrace.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("--api", type=str, default=None, help="Graphics API: gles or vulkan")
    shared.add_argument("--out-dir", type=str, default=None, help="Directory for the capture file")
    shared.add_argument("--name", type=str, default=None, help="Capture file name (default: derived)")
    shared.add_argument(
        "--frames", type=int, default=None,
        help="Stop after this many frames (0 for unlimited)",
    )
    shared.add_argument(
        "--mid-execution", action=argparse.BooleanOptionalAction, default=None,
        help="Launch the application, then start capturing when Enter is pressed",
    )
    shared.add_argument(
        "--disable-buffering", action=argparse.BooleanOptionalAction, default=None,
        help="Write the capture without buffering",
    )
    shared.add_argument("--args", type=str, default=None, help="Arguments passed to the target")
    shared.add_argument(
        "--dry-run", action="store_true",
        help="Print the request and tracer command without launching",
    )
    shared.add_argument(
        "--remember", action="store_true",
        help="Save the confirmed values as defaults in the config file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    android_parser = subparsers.add_parser(
        "android", parents=[shared], help="Trace an application on an Android device",
    )
    android_parser.add_argument("--device", type=str, default=None, help="Device serial")
    android_parser.add_argument(
        "--target", type=str, default=None,
        help="Package name or ACTION:PACKAGE/ACTIVITY",
    )
    android_parser.add_argument(
        "--clear-cache", action=argparse.BooleanOptionalAction, default=None,
        help="Clear the package cache before tracing",
    )
    android_parser.add_argument(
        "--disable-pcs", action=argparse.BooleanOptionalAction, default=None,
        help="Disable pre-compiled shaders",
    )

    desktop_parser = subparsers.add_parser(
        "desktop", parents=[shared], help="Trace a desktop Vulkan application",
    )
    desktop_parser.add_argument("--executable", type=str, default=None, help="Executable to trace")
    desktop_parser.add_argument("--cwd", type=str, default=None, help="Working directory")

    return parser.parse_args(argv)


def build_draft(settings, args: argparse.Namespace):
    """Create a draft from remembered defaults and apply command-line overrides."""
    from gfxtrace.domain.models import GraphicsApi, Platform
    from gfxtrace.draft import new_draft
    from gfxtrace.exceptions import GfxTraceError

    platform = Platform(args.command)
    draft = new_draft(platform, settings.defaults)

    if args.api is not None:
        api = GraphicsApi.parse(args.api)
        if api is None:
            raise GfxTraceError(f"Unknown graphics API: {args.api}")
        draft.api = api
    if args.out_dir is not None:
        draft.output_dir = args.out_dir
    if args.frames is not None:
        draft.frame_count = args.frames
    if args.mid_execution is not None:
        draft.mid_execution = args.mid_execution
    if args.disable_buffering is not None:
        draft.disable_buffering = args.disable_buffering
    if args.args is not None:
        draft.arguments = args.args

    if platform == Platform.ANDROID:
        if args.device is not None:
            draft.device = args.device
        if args.clear_cache is not None:
            draft.clear_cache = args.clear_cache
        if args.disable_pcs is not None:
            draft.disable_pcs = args.disable_pcs
        if args.target is not None:
            draft.set_target(args.target)
    else:
        if args.cwd is not None:
            draft.set_working_directory(args.cwd)
        if args.executable is not None:
            draft.set_executable(args.executable)

    if args.name is not None:
        draft.set_output_name(args.name)
    return draft


def _wait_for_enter(loop: asyncio.AbstractEventLoop) -> asyncio.Future[None]:
    """Future resolved when a line is read from stdin.

    The read happens on a daemon thread so an unanswered prompt never
    blocks interpreter shutdown.
    """
    future: asyncio.Future[None] = loop.create_future()

    def _read() -> None:
        sys.stdin.readline()
        try:
            loop.call_soon_threadsafe(_resolve)
        except RuntimeError:
            pass

    def _resolve() -> None:
        if not future.done():
            future.set_result(None)

    threading.Thread(target=_read, daemon=True).start()
    return future


async def _run_trace(settings, request) -> bool:
    """Run a capture session and return True on failure."""
    from gfxtrace.runner.command import CommandRunner
    from gfxtrace.session.session import TraceSession

    runner = CommandRunner(settings.runner.command)
    session = TraceSession(request, runner, stop_timeout=settings.session.stop_timeout)
    loop = asyncio.get_running_loop()

    print(request.progress_title)
    await session.start()
    finished = asyncio.ensure_future(session.wait_finished())

    if session.pending_action == "capture":
        print("Press Enter to start capturing.")
        start_requested = _wait_for_enter(loop)
        await asyncio.wait({finished, start_requested}, return_when=asyncio.FIRST_COMPLETED)
        start_requested.cancel()
        if not session.is_finished:
            await session.begin_capture()

    if not session.is_finished:
        print("Press Enter to stop capturing.")
        stop_requested = _wait_for_enter(loop)
        await asyncio.wait({finished, stop_requested}, return_when=asyncio.FIRST_COMPLETED)
        stop_requested.cancel()
        if not session.is_finished:
            await session.stop()
    await finished

    for line in session.log:
        print(line)
    return session.failure


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the gfxtrace CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from pydantic import ValidationError

    from gfxtrace.config.settings import load_settings, save_defaults
    from gfxtrace.draft import remember
    from gfxtrace.exceptions import GfxTraceError
    from gfxtrace.finalize import finalize
    from gfxtrace.readiness import evaluate
    from gfxtrace.runner.command import CommandRunner
    from gfxtrace.utils.logging import setup_logging

    settings = load_settings(args.config)

    setup_logging(settings.logging, verbose=args.verbose)

    try:
        draft = build_draft(settings, args)
        readiness = evaluate(draft)
        if readiness.mid_execution_warning:
            logger.warning(MEC_WARNING)
        if readiness.pcs_warning:
            logger.warning(PCS_WARNING)
        if not readiness.ready:
            logger.error("Trace is not ready, missing: %s", ", ".join(readiness.missing))
            sys.exit(2)

        request = finalize(draft)
        if args.remember:
            save_defaults(args.config, remember(draft, settings.defaults))

        if args.dry_run:
            print(json.dumps(request.model_dump(mode="json"), indent=2))
            print(" ".join(CommandRunner(settings.runner.command).build_command(request)))
            return

        logger.info("Starting %s trace", args.command)
        failed = asyncio.run(_run_trace(settings, request))
    except (GfxTraceError, ValidationError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if failed:
        sys.exit(1)
    print(f"Capture written to {request.output}")


if __name__ == "__main__":
    main()
