"""Shared test fixtures for the gfxtrace test suite.

Provides common fixtures used across unit tests: fixed timestamps, ready
drafts for both platforms, and scripted process runners that stand in for
a real tracer.
"""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime

import pytest

from gfxtrace.domain.models import AndroidTraceRequest, BareLaunch, GraphicsApi, Platform
from gfxtrace.draft import TraceConfigDraft
from gfxtrace.session.base import ProcessRunner, RunnerHandle


# ---------------------------------------------------------------------------
# Draft / Request Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def timestamp() -> datetime:
    return datetime(2025, 1, 2, 13, 45, 10)


@pytest.fixture
def android_draft(timestamp: datetime) -> TraceConfigDraft:
    """A ready Android draft with a bare package target."""
    draft = TraceConfigDraft(
        platform=Platform.ANDROID,
        api=GraphicsApi.GLES,
        device="emulator-5554",
        output_dir="/tmp/traces",
        frame_count=10,
        disable_buffering=True,
        created_at=timestamp,
    )
    draft.set_target("com.example.game")
    return draft


@pytest.fixture
def desktop_draft(timestamp: datetime) -> TraceConfigDraft:
    """A ready Desktop draft for a Vulkan executable."""
    draft = TraceConfigDraft(
        platform=Platform.DESKTOP,
        api=GraphicsApi.VULKAN,
        output_dir="/tmp/traces",
        frame_count=0,
        mid_execution=True,
        created_at=timestamp,
    )
    draft.set_executable("/opt/demo/cube.exe")
    draft.arguments = "--fullscreen"
    return draft


@pytest.fixture
def android_request() -> AndroidTraceRequest:
    return AndroidTraceRequest(
        api=GraphicsApi.GLES,
        output="/tmp/traces/game.gfxtrace",
        frame_count=5,
        mid_execution=False,
        device="emulator-5554",
        target=BareLaunch(target="com.example.game"),
    )


# ---------------------------------------------------------------------------
# Runner Fakes
# ---------------------------------------------------------------------------


class FakeHandle(RunnerHandle):
    """Handle whose process 'exits' when ``exited`` is set."""

    def __init__(self) -> None:
        self.exited = asyncio.Event()
        self.wait_cancelled = False

    async def wait(self) -> None:
        try:
            await self.exited.wait()
        except asyncio.CancelledError:
            self.wait_cancelled = True
            raise


class ScriptedRunner(ProcessRunner):
    """Runner that replays a fixed script of callbacks during launch."""

    def __init__(
        self,
        lines: tuple[str, ...] = (),
        error: BaseException | None = None,
        exit_on_launch: bool = True,
        ignore_terminate: bool = False,
        ignore_kill: bool = False,
        launch_error: Exception | None = None,
        launch_gate: asyncio.Event | None = None,
        terminate_error: Exception | None = None,
        capture_error: Exception | None = None,
    ) -> None:
        self.lines = lines
        self.error = error
        self.exit_on_launch = exit_on_launch
        self.ignore_terminate = ignore_terminate
        self.ignore_kill = ignore_kill
        self.launch_error = launch_error
        self.launch_gate = launch_gate
        self.terminate_error = terminate_error
        self.capture_error = capture_error
        self.launch_count = 0
        self.launching = asyncio.Event()
        self.captures: list[FakeHandle] = []
        self.terminated: list[FakeHandle] = []
        self.killed: list[FakeHandle] = []
        self.on_progress = None
        self.on_failure = None

    async def launch(self, request, on_progress, on_failure) -> FakeHandle:
        self.launch_count += 1
        self.launching.set()
        if self.launch_gate is not None:
            await self.launch_gate.wait()
        if self.launch_error is not None:
            raise self.launch_error
        self.on_progress = on_progress
        self.on_failure = on_failure
        handle = FakeHandle()
        for line in self.lines:
            on_progress(line)
        if self.error is not None:
            on_failure(self.error)
        if self.exit_on_launch:
            handle.exited.set()
        return handle

    async def begin_capture(self, handle: FakeHandle) -> None:
        self.captures.append(handle)
        if self.capture_error is not None:
            raise self.capture_error

    async def terminate(self, handle: FakeHandle) -> None:
        self.terminated.append(handle)
        if self.terminate_error is not None:
            raise self.terminate_error
        if self.ignore_terminate:
            await asyncio.sleep(3600)
        handle.exited.set()

    async def kill(self, handle: FakeHandle) -> None:
        self.killed.append(handle)
        if not self.ignore_kill:
            handle.exited.set()


class ThreadedRunner(ProcessRunner):
    """Runner that reports progress from a worker thread, like a real tracer."""

    def __init__(self, lines: tuple[str, ...], error: BaseException | None = None) -> None:
        self.lines = lines
        self.error = error

    async def launch(self, request, on_progress, on_failure) -> FakeHandle:
        loop = asyncio.get_running_loop()
        handle = FakeHandle()

        def _work() -> None:
            for line in self.lines:
                on_progress(line)
            if self.error is not None:
                on_failure(self.error)
            loop.call_soon_threadsafe(handle.exited.set)

        threading.Thread(target=_work).start()
        return handle

    async def terminate(self, handle: FakeHandle) -> None:
        await handle.wait()

    async def kill(self, handle: FakeHandle) -> None:
        handle.exited.set()


@pytest.fixture
def scripted_runner() -> type[ScriptedRunner]:
    return ScriptedRunner


@pytest.fixture
def threaded_runner() -> type[ThreadedRunner]:
    return ThreadedRunner
