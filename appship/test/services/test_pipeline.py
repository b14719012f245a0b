"""End-to-end tests for appship.services.pipeline with fake transport and runner."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from appship.core.errors import (
    ArtifactNotFoundError,
    BuildError,
    ConfigError,
    ErrorCode,
    ProtocolError,
    UploadError,
)
from appship.core.models import UploadResult
from appship.core.result import Err, Ok
from appship.net.http import HttpResponse, MockHttpClient
from appship.output.console import MockConsole, RichConsole
from appship.services.pipeline import PipelineController, RunArgs, Stage

if TYPE_CHECKING:
    from appship.test.conftest import FakeRunner

API = "https://appho.st"
S3_URL = "https://storage.example.com/upload/abc"
INSTALL_URL = "https://appho.st/d/xyz"
TOKEN = "42:token"
SEND_URL = f"https://api.telegram.org/bot{TOKEN}/sendMessage"
TELEGRAM_ENV = f"TELEGRAM_BOT_TOKEN={TOKEN}\nTELEGRAM_CHAT_ID=-100\n"

AAB = "build/app/outputs/bundle/release/app-release.aab"
IPA = "build/ios/ipa/Runner.ipa"


def _http() -> MockHttpClient:
    http = MockHttpClient()
    http.set("GET", f"{API}/api/get_upload_url", HttpResponse(200, S3_URL))
    http.set("PUT", S3_URL, HttpResponse(200, ""))
    install_body = f'{{"url": "{INSTALL_URL}"}}'
    http.set("GET", f"{API}/api/get_current_version/", HttpResponse(200, install_body))
    http.set("POST", SEND_URL, HttpResponse(200, '{"ok": true}'))
    return http


def _controller(
    http: MockHttpClient, runner: FakeRunner
) -> tuple[PipelineController, MockConsole]:
    console = MockConsole()
    return PipelineController(console=console, http=http, runner=runner, api_url=API), console


def _telegram_posts(http: MockHttpClient) -> list[str]:
    texts: list[str] = []
    for call in http.calls_to("https://api.telegram.org"):
        assert isinstance(call.body, dict)
        texts.append(str(call.body["text"]))
    return texts


class TestUploadOnly:
    def test_android_bundle_end_to_end(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", version="1.2.3+4")
        write_file(app, AAB)
        http = _http()
        controller, console = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(upload=True), cwd=app)

        assert outcome.result == Ok(UploadResult(install_url=INSTALL_URL))
        assert outcome.exit_code == 0
        assert outcome.stages == [
            Stage.IDLE,
            Stage.RESOLVING,
            Stage.LOCATING,
            Stage.UPLOADING,
            Stage.NOTIFYING,
            Stage.DONE,
        ]
        assert fake_runner.calls == []
        assert http.calls[0].params["version"] == "1.2.3+4"
        assert http.calls[0].params["android_package_name"] == "com.example.demo.android"
        assert console.find(INSTALL_URL)

    def test_missing_artifact_never_touches_network(
        self, make_app: Callable[..., Path], fake_runner: FakeRunner
    ) -> None:
        app = make_app("android")
        http = _http()
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app.parent)

        assert isinstance(outcome.result, Err)
        assert isinstance(outcome.result.error.error, ArtifactNotFoundError)
        assert outcome.result.error.stage == Stage.LOCATING
        assert outcome.exit_code == int(ErrorCode.IO_ERROR)
        assert http.calls == []

    def test_missing_artifact_with_telegram_sends_only_failure(
        self, make_app: Callable[..., Path], fake_runner: FakeRunner
    ) -> None:
        app = make_app("ios", telegram=TELEGRAM_ENV)
        http = _http()
        controller, _ = _controller(http, fake_runner)

        controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert http.calls_to(API) == []
        posts = _telegram_posts(http)
        assert len(posts) == 1
        assert "Build Failed" in posts[0]
        assert "1.2.3+4" in posts[0]


class TestBuildAndUpload:
    def test_builds_then_uploads(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("ios", telegram=TELEGRAM_ENV)
        write_file(app, IPA)
        http = _http()
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app), cwd=app)

        assert outcome.exit_code == 0
        assert fake_runner.calls == [["flutter", "build", "ipa"]]
        assert Stage.SYNCING not in outcome.stages
        assert http.calls[0].params["ios_bundle_identifier"] == "com.example.demo"
        posts = _telegram_posts(http)
        assert len(posts) == 1
        assert INSTALL_URL in posts[0]

    def test_update_runs_sync_first(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android")
        write_file(app, AAB)
        controller, _ = _controller(_http(), fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, update=True), cwd=app)

        assert outcome.exit_code == 0
        assert outcome.stages[:5] == [
            Stage.IDLE,
            Stage.RESOLVING,
            Stage.SYNCING,
            Stage.BUILDING,
            Stage.LOCATING,
        ]
        assert fake_runner.calls[-1] == ["flutter", "build", "appbundle"]

    def test_build_failure_skips_lookup_and_notifies_once(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", telegram=TELEGRAM_ENV)
        # A stale artifact must not be uploaded after a failed build.
        write_file(app, AAB)
        fake_runner.returncodes[("flutter", "build")] = 1
        http = _http()
        controller, console = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app), cwd=app)

        assert isinstance(outcome.result, Err)
        assert isinstance(outcome.result.error.error, BuildError)
        assert outcome.exit_code == int(ErrorCode.BUILD_ERROR)
        assert outcome.stages[-2:] == [Stage.BUILDING, Stage.FAILED]
        assert Stage.LOCATING not in outcome.stages
        assert http.calls_to(API) == []
        posts = _telegram_posts(http)
        assert len(posts) == 1
        assert "build failed" in posts[0]
        assert console.find("error: build failed")

    def test_dependency_fetch_failure_aborts_before_build(
        self, make_app: Callable[..., Path], fake_runner: FakeRunner
    ) -> None:
        app = make_app("android")
        fake_runner.returncodes[("flutter", "pub", "get")] = 1
        controller, _ = _controller(_http(), fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, update=True), cwd=app)

        assert outcome.exit_code == int(ErrorCode.BUILD_ERROR)
        assert outcome.stages[-2:] == [Stage.SYNCING, Stage.FAILED]
        assert ["flutter", "build", "appbundle"] not in fake_runner.calls

    def test_vcs_failures_do_not_abort(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android")
        write_file(app, AAB)
        fake_runner.returncodes[("git",)] = 1
        controller, console = _controller(_http(), fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, update=True), cwd=app)

        assert outcome.exit_code == 0
        assert console.has_warning()


class TestResolveFailures:
    def test_ambiguous_platform(
        self, make_app: Callable[..., Path], fake_runner: FakeRunner
    ) -> None:
        app = make_app("ios", "android", telegram=TELEGRAM_ENV)
        http = _http()
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app), cwd=app)

        assert isinstance(outcome.result, Err)
        error = outcome.result.error.error
        assert isinstance(error, ConfigError)
        assert error.kind == "ambiguous_platform"
        assert outcome.stages == [Stage.IDLE, Stage.RESOLVING, Stage.FAILED]
        assert outcome.exit_code == int(ErrorCode.ENV_ERROR)
        # Nothing resolved yet, so nothing to report.
        assert http.calls == []
        assert fake_runner.calls == []

    def test_no_platform_dir(
        self, make_app: Callable[..., Path], fake_runner: FakeRunner
    ) -> None:
        app = make_app()
        controller, _ = _controller(_http(), fake_runner)

        outcome = controller.run(RunArgs(app_dir=app), cwd=app)

        assert isinstance(outcome.result, Err)
        assert isinstance(outcome.result.error.error, ConfigError)
        assert outcome.result.error.error.kind == "unknown_platform"

    def test_missing_app_dir(self, tmp_path: Path, fake_runner: FakeRunner) -> None:
        controller, console = _controller(_http(), fake_runner)

        outcome = controller.run(RunArgs(app_dir=tmp_path / "missing"), cwd=tmp_path)

        assert outcome.exit_code == int(ErrorCode.USER_ERROR)
        assert console.find("configuration failed")


class TestUploadFailures:
    def test_missing_credentials_fail_before_network(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", credentials={"user_id": "u", "app_id": "a"})
        write_file(app, AAB)
        http = _http()
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert isinstance(outcome.result, Err)
        assert outcome.result.error.stage == Stage.UPLOADING
        assert isinstance(outcome.result.error.error, ConfigError)
        assert http.calls == []

    def test_malformed_upload_url(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", telegram=TELEGRAM_ENV)
        write_file(app, AAB)
        http = _http()
        http.set("GET", f"{API}/api/get_upload_url", HttpResponse(200, "invalid key"))
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert isinstance(outcome.result, Err)
        assert isinstance(outcome.result.error.error, ProtocolError)
        assert outcome.exit_code == int(ErrorCode.NETWORK_ERROR)
        assert [c.method for c in http.calls_to(API)] == ["GET"]
        assert http.calls_to(S3_URL) == []
        assert len(_telegram_posts(http)) == 1

    def test_rejected_put(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android")
        write_file(app, AAB)
        http = _http()
        http.set("PUT", S3_URL, HttpResponse(403, "expired"))
        controller, _ = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert isinstance(outcome.result, Err)
        assert isinstance(outcome.result.error.error, UploadError)
        assert outcome.stages[-2:] == [Stage.UPLOADING, Stage.FAILED]


class TestNotificationIsBestEffort:
    def test_telegram_error_does_not_fail_success(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", telegram=TELEGRAM_ENV)
        write_file(app, AAB)
        http = _http()
        http.set("POST", SEND_URL, HttpResponse(500, "down"))
        controller, console = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert outcome.exit_code == 0
        assert outcome.stages[-1] == Stage.DONE
        assert console.has_warning()
        assert len(_telegram_posts(http)) == 1

    def test_incomplete_telegram_config_does_not_fail(
        self,
        make_app: Callable[..., Path],
        write_file: Callable[..., Path],
        fake_runner: FakeRunner,
    ) -> None:
        app = make_app("android", telegram="TELEGRAM_BOT_TOKEN=x\n")
        write_file(app, AAB)
        http = _http()
        controller, console = _controller(http, fake_runner)

        outcome = controller.run(RunArgs(app_dir=app, upload=True), cwd=app)

        assert outcome.exit_code == 0
        assert console.find("missing required fields")
        assert _telegram_posts(http) == []


class TestRichConsoleOutput:
    def test_bracketed_app_dir_reports_missing_artifact(
        self,
        tmp_path: Path,
        fake_runner: FakeRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        app = tmp_path / "release [/old]"
        (app / "android").mkdir(parents=True)
        controller = PipelineController(
            console=RichConsole(), http=_http(), runner=fake_runner, api_url=API
        )

        outcome = controller.run(RunArgs(upload=True), cwd=app)

        assert outcome.exit_code == int(ErrorCode.IO_ERROR)
        # Rich wraps long lines when not writing to a terminal.
        out = " ".join(capsys.readouterr().out.split())
        assert "[/old]" in out
