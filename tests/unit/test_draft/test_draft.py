"""Tests for trace drafts, derived fields and remembered defaults."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from gfxtrace.config.settings import TraceDefaults
from gfxtrace.domain.models import FieldOrigin, GraphicsApi, Platform
from gfxtrace.draft import TraceConfigDraft, new_draft, remember


class TestDraftValidation:
    def test_negative_frame_count_rejected(self, android_draft: TraceConfigDraft) -> None:
        with pytest.raises(ValidationError):
            android_draft.frame_count = -1
        assert android_draft.frame_count == 10

    def test_desktop_rejects_gles(self, desktop_draft: TraceConfigDraft) -> None:
        with pytest.raises(ValidationError, match="Vulkan"):
            desktop_draft.api = GraphicsApi.GLES
        assert desktop_draft.api == GraphicsApi.VULKAN

    def test_desktop_api_may_be_unset(self, desktop_draft: TraceConfigDraft) -> None:
        desktop_draft.api = None
        assert desktop_draft.api is None


class TestOutputNameDerivation:
    def test_android_target_derives_name(self, android_draft: TraceConfigDraft) -> None:
        assert android_draft.output_name == "game_20250102_1345.gfxtrace"
        android_draft.set_target("MAIN:org.demo.racer/.Main")
        assert android_draft.output_name == "racer_20250102_1345.gfxtrace"

    def test_empty_target_uses_default_name(self, android_draft: TraceConfigDraft) -> None:
        android_draft.set_target("")
        assert android_draft.output_name == "trace_20250102_1345.gfxtrace"

    def test_desktop_executable_derives_name(self, desktop_draft: TraceConfigDraft) -> None:
        assert desktop_draft.output_name == "cube_20250102_1345.gfxtrace"

    def test_user_edit_stops_derivation(self, android_draft: TraceConfigDraft) -> None:
        android_draft.set_output_name("mine.gfxtrace")
        assert android_draft.output_name_origin == FieldOrigin.USER_OVERRIDDEN
        android_draft.set_target("com.other.app")
        assert android_draft.output_name == "mine.gfxtrace"

    def test_programmatic_write_keeps_derivation(self, android_draft: TraceConfigDraft) -> None:
        android_draft.set_output_name("tmp.gfxtrace", user=False)
        assert android_draft.output_name_origin == FieldOrigin.DERIVED
        android_draft.set_target("com.other.app")
        assert android_draft.output_name == "app_20250102_1345.gfxtrace"

    def test_reset_re_derives(self, android_draft: TraceConfigDraft) -> None:
        android_draft.set_output_name("mine.gfxtrace")
        android_draft.reset_output_name()
        assert android_draft.output_name_origin == FieldOrigin.DERIVED
        assert android_draft.output_name == "game_20250102_1345.gfxtrace"


class TestWorkingDirectoryDerivation:
    def test_existing_parent_is_used(self, tmp_path: Path, timestamp: datetime) -> None:
        exe = tmp_path / "bin" / "demo"
        exe.parent.mkdir()
        draft = TraceConfigDraft(platform=Platform.DESKTOP, created_at=timestamp)
        draft.set_executable(str(exe))
        assert draft.working_directory == str(exe.parent.absolute())
        assert draft.working_directory_origin == FieldOrigin.DERIVED

    def test_missing_parent_is_ignored(self, desktop_draft: TraceConfigDraft) -> None:
        assert desktop_draft.working_directory == ""

    def test_bare_name_has_no_parent(self, timestamp: datetime) -> None:
        draft = TraceConfigDraft(platform=Platform.DESKTOP, created_at=timestamp)
        draft.set_executable("demo")
        assert draft.working_directory == ""

    def test_user_directory_is_kept(self, tmp_path: Path, timestamp: datetime) -> None:
        draft = TraceConfigDraft(platform=Platform.DESKTOP, created_at=timestamp)
        draft.set_working_directory("/srv/work")
        draft.set_executable(str(tmp_path / "demo"))
        assert draft.working_directory == "/srv/work"
        assert draft.working_directory_origin == FieldOrigin.USER_OVERRIDDEN

    def test_reset_clears_and_re_derives(self, tmp_path: Path, timestamp: datetime) -> None:
        draft = TraceConfigDraft(platform=Platform.DESKTOP, created_at=timestamp)
        draft.set_working_directory("/srv/work")
        draft.set_executable(str(tmp_path / "demo"))
        draft.reset_working_directory()
        assert draft.working_directory == str(tmp_path.absolute())

    def test_android_never_derives_directory(self, tmp_path: Path, timestamp: datetime) -> None:
        draft = TraceConfigDraft(platform=Platform.ANDROID, created_at=timestamp)
        draft.set_executable(str(tmp_path / "demo"))
        assert draft.working_directory == ""


class TestNewDraft:
    def test_android_defaults(self, timestamp: datetime) -> None:
        defaults = TraceDefaults(
            out_dir="/captures",
            frame_count=30,
            mid_execution=True,
            device="serial-1",
            package="com.foo.bar",
            intent_args="-e level 3",
            clear_cache=True,
        )
        draft = new_draft(Platform.ANDROID, defaults, now=timestamp)
        assert draft.api == GraphicsApi.GLES
        assert draft.output_dir == "/captures"
        assert draft.frame_count == 30
        assert draft.mid_execution is True
        assert draft.device == "serial-1"
        assert draft.target == "com.foo.bar"
        assert draft.arguments == "-e level 3"
        assert draft.clear_cache is True
        assert draft.disable_pcs is False
        assert draft.output_name == "bar_20250102_1345.gfxtrace"

    def test_android_remembered_api(self) -> None:
        draft = new_draft(Platform.ANDROID, TraceDefaults(api="vulkan"))
        assert draft.api == GraphicsApi.VULKAN

    def test_android_unknown_api_falls_back(self) -> None:
        draft = new_draft(Platform.ANDROID, TraceDefaults(api="metal"))
        assert draft.api == GraphicsApi.GLES

    def test_remembered_device_must_be_connected(self) -> None:
        defaults = TraceDefaults(device="serial-1")
        assert new_draft(Platform.ANDROID, defaults, devices=["serial-2"]).device == ""
        assert new_draft(Platform.ANDROID, defaults, devices=["serial-1"]).device == "serial-1"

    def test_desktop_defaults(self, timestamp: datetime) -> None:
        defaults = TraceDefaults(
            api="gles",
            executable="/opt/demo/cube",
            args="--hd",
            cwd="/srv/work",
            without_buffering=True,
        )
        draft = new_draft(Platform.DESKTOP, defaults, now=timestamp)
        assert draft.api == GraphicsApi.VULKAN
        assert draft.executable == "/opt/demo/cube"
        assert draft.arguments == "--hd"
        assert draft.working_directory == "/srv/work"
        assert draft.disable_buffering is True
        assert draft.output_name == "cube_20250102_1345.gfxtrace"

    def test_no_defaults(self, timestamp: datetime) -> None:
        draft = new_draft(Platform.DESKTOP, now=timestamp)
        assert draft.output_name == "trace_20250102_1345.gfxtrace"
        assert draft.output_dir == ""


class TestRemember:
    def test_android_values(self, android_draft: TraceConfigDraft) -> None:
        android_draft.arguments = "-e x 1"
        android_draft.disable_pcs = True
        defaults = remember(android_draft, TraceDefaults(executable="/keep/me"))
        assert defaults.api == "gles"
        assert defaults.out_dir == "/tmp/traces"
        assert defaults.frame_count == 10
        assert defaults.without_buffering is True
        assert defaults.device == "emulator-5554"
        assert defaults.package == "com.example.game"
        assert defaults.intent_args == "-e x 1"
        assert defaults.disable_pcs is True
        assert defaults.executable == "/keep/me"

    def test_desktop_keeps_android_api(self, desktop_draft: TraceConfigDraft) -> None:
        defaults = remember(desktop_draft, TraceDefaults(api="gles"))
        assert defaults.api == "gles"
        assert defaults.executable == "/opt/demo/cube.exe"
        assert defaults.args == "--fullscreen"
        assert defaults.mid_execution is True

    def test_round_trip(self, android_draft: TraceConfigDraft, timestamp: datetime) -> None:
        restored = new_draft(Platform.ANDROID, remember(android_draft), now=timestamp)
        assert restored.target == android_draft.target
        assert restored.device == android_draft.device
        assert restored.output_name == android_draft.output_name
