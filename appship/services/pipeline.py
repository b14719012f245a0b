"""Pipeline controller: resolve → (sync) → build → locate → upload → notify.

Stages run strictly one after another. Any stage can fail; a failure
after configuration is resolved triggers exactly one best-effort failure
notification, and every failure maps to a non-zero exit code. Success
ends with exactly one success notification and the install URL printed.

Upload-only mode skips sync and build but still goes through LOCATING,
so a missing artifact fails before any network call.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from pathlib import Path
from typing import TypeVar

from appship.core.config import (
    bundle_id_for,
    load_credential_record,
    load_credentials,
    resolve_config,
)
from appship.core.errors import ArtifactNotFoundError, ErrorCode, PipelineError
from appship.core.metadata import load_identity, peek_version
from appship.core.models import (
    AppIdentity,
    BuildArtifact,
    DistributionCredentials,
    PipelineConfig,
    UploadResult,
)
from appship.core.result import Err, Ok, Result
from appship.net.http import HttpClient
from appship.output.console import ConsoleProtocol, Style
from appship.output.errors import describe_error, exit_code_for, print_pipeline_error
from appship.platform.process import CommandRunner, stream
from appship.services.build import BuildDriver
from appship.services.locator import ArtifactLocator
from appship.services.notify import Notifier, PipelineFailed, PipelineSucceeded
from appship.services.stages import StepOutcome, advance, finish, run_stages
from appship.services.upload import DEFAULT_API_URL, DistributionClient

__all__ = [
    "PipelineController",
    "PipelineOutcome",
    "RunArgs",
    "Stage",
    "StageFailure",
]


class Stage(Enum):
    IDLE = auto()
    RESOLVING = auto()
    SYNCING = auto()
    BUILDING = auto()
    LOCATING = auto()
    UPLOADING = auto()
    NOTIFYING = auto()
    DONE = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return {
            Stage.RESOLVING: "configuration",
            Stage.SYNCING: "sync",
            Stage.BUILDING: "build",
            Stage.LOCATING: "artifact lookup",
            Stage.UPLOADING: "upload",
            Stage.NOTIFYING: "notification",
        }.get(self, str(self))


@dataclass(frozen=True, slots=True)
class RunArgs:
    """Raw command line values, before resolution."""

    app_dir: Path | None = None
    platform: str | None = None
    update: bool = False
    upload: bool = False


@dataclass(frozen=True, slots=True)
class StageFailure:
    stage: Stage
    error: PipelineError
    config: PipelineConfig | None = None

    @property
    def exit_code(self) -> int:
        return exit_code_for(self.error)


@dataclass(frozen=True, slots=True)
class _RunState:
    stage: Stage
    args: RunArgs
    cwd: Path
    config: PipelineConfig | None = None
    artifact: BuildArtifact | None = None
    identity: AppIdentity | None = None
    upload: UploadResult | None = None


def _empty_stages() -> list[Stage]:
    return []


@dataclass
class PipelineOutcome:
    """What happened: the stages entered, in order, and the final result."""

    result: Result[UploadResult, StageFailure]
    stages: list[Stage] = field(default_factory=_empty_stages)

    @property
    def exit_code(self) -> int:
        if isinstance(self.result, Err):
            return self.result.error.exit_code
        return int(ErrorCode.OK)


T = TypeVar("T")

_Step = Result[StepOutcome[_RunState], StageFailure]


class PipelineController:
    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        http: HttpClient,
        runner: CommandRunner = stream,
        flutter: str = "flutter",
        api_url: str = DEFAULT_API_URL,
    ) -> None:
        self._console = console
        self._http = http
        self._runner = runner
        self._flutter = flutter
        self._api_url = api_url

    # -- stages ---------------------------------------------------------------

    def _resolve(self, state: _RunState) -> _Step:
        args = state.args
        result = resolve_config(
            app_dir=args.app_dir,
            platform=args.platform,
            update=args.update,
            upload=args.upload,
            cwd=state.cwd,
        )
        if isinstance(result, Err):
            return Err(StageFailure(Stage.RESOLVING, result.error))
        config = result.value

        self._console.print(f"App directory: {config.app_dir}", Style.DIM)
        self._console.print(f"Platform: {config.platform} ({config.mode})", Style.DIM)

        if config.syncs:
            next_stage = Stage.SYNCING
        elif config.builds:
            next_stage = Stage.BUILDING
        else:
            next_stage = Stage.LOCATING
        return Ok(advance(replace(state, stage=next_stage, config=config)))

    def _driver(self, config: PipelineConfig) -> BuildDriver:
        return BuildDriver(
            config=config,
            console=self._console,
            runner=self._runner,
            flutter=self._flutter,
        )

    def _sync(self, state: _RunState) -> _Step:
        config = _require(state.config)
        result = self._driver(config).sync()
        if isinstance(result, Err):
            return Err(StageFailure(Stage.SYNCING, result.error, config))
        return Ok(advance(replace(state, stage=Stage.BUILDING)))

    def _build(self, state: _RunState) -> _Step:
        config = _require(state.config)
        self._console.print(f"Starting the build process for {config.platform}...")
        result = self._driver(config).build()
        if isinstance(result, Err):
            return Err(StageFailure(Stage.BUILDING, result.error, config))
        return Ok(advance(replace(state, stage=Stage.LOCATING)))

    def _locate(self, state: _RunState) -> _Step:
        config = _require(state.config)
        locator = ArtifactLocator(config.app_dir)
        artifact = locator.find(config.platform)
        if artifact is None:
            error = ArtifactNotFoundError(
                platform=str(config.platform),
                searched=locator.candidates(config.platform),
            )
            return Err(StageFailure(Stage.LOCATING, error, config))

        self._console.print(f"Found build artifact: {artifact.path}")
        return Ok(advance(replace(state, stage=Stage.UPLOADING, artifact=artifact)))

    def _load_upload_inputs(
        self, config: PipelineConfig
    ) -> Result[tuple[DistributionCredentials, AppIdentity], PipelineError]:
        record = load_credential_record(config.app_dir)
        if isinstance(record, Err):
            return record
        credentials = load_credentials(record.value)
        if isinstance(credentials, Err):
            return credentials
        bundle_id = bundle_id_for(record.value, config.platform)
        if isinstance(bundle_id, Err):
            return bundle_id
        identity = load_identity(config.app_dir, bundle_id.value)
        if isinstance(identity, Err):
            return identity
        return Ok((credentials.value, identity.value))

    def _upload(self, state: _RunState) -> _Step:
        config = _require(state.config)
        artifact = _require(state.artifact)

        inputs = self._load_upload_inputs(config)
        if isinstance(inputs, Err):
            return Err(StageFailure(Stage.UPLOADING, inputs.error, config))
        credentials, identity = inputs.value

        client = DistributionClient(http=self._http, console=self._console, base_url=self._api_url)
        result = client.upload(credentials, identity, artifact)
        if isinstance(result, Err):
            return Err(StageFailure(Stage.UPLOADING, result.error, config))

        return Ok(
            advance(
                replace(state, stage=Stage.NOTIFYING, identity=identity, upload=result.value)
            )
        )

    def _notify_success(self, state: _RunState) -> _Step:
        config = _require(state.config)
        identity = _require(state.identity)
        upload = _require(state.upload)

        # Warnings are printed by the notifier and never fail the run.
        self._notifier(config).notify(
            PipelineSucceeded(
                platform=str(config.platform),
                version=identity.version,
                app_name=identity.app_name,
                install_url=upload.install_url,
            )
        )
        return Ok(finish(replace(state, stage=Stage.DONE)))

    # -- driver ---------------------------------------------------------------

    def _notifier(self, config: PipelineConfig) -> Notifier:
        return Notifier(app_dir=config.app_dir, http=self._http, console=self._console)

    def _notify_failure(self, failure: StageFailure) -> None:
        config = failure.config
        if config is None:
            return
        self._notifier(config).notify(
            PipelineFailed(
                platform=str(config.platform),
                version=peek_version(config.app_dir) or "unknown",
                message=f"{failure.stage.label} failed: {describe_error(failure.error)}",
            )
        )

    def run(self, args: RunArgs, cwd: Path) -> PipelineOutcome:
        """Run the whole pipeline once and report the outcome."""
        stages: list[Stage] = [Stage.IDLE]

        def on_enter(state: _RunState) -> None:
            stages.append(state.stage)
            if state.stage not in (Stage.RESOLVING, Stage.NOTIFYING):
                self._console.header(state.stage.label.capitalize())

        result = run_stages(
            initial_state=_RunState(stage=Stage.RESOLVING, args=args, cwd=cwd),
            get_stage=lambda s: s.stage,
            handlers={
                Stage.RESOLVING: self._resolve,
                Stage.SYNCING: self._sync,
                Stage.BUILDING: self._build,
                Stage.LOCATING: self._locate,
                Stage.UPLOADING: self._upload,
                Stage.NOTIFYING: self._notify_success,
            },
            on_enter=on_enter,
        )

        if isinstance(result, Err):
            failure = result.error
            stages.append(Stage.FAILED)
            print_pipeline_error(failure.stage.label, failure.error, self._console)
            self._notify_failure(failure)
            return PipelineOutcome(result=Err(failure), stages=stages)

        stages.append(Stage.DONE)
        upload = _require(result.value.upload)
        self._console.newline()
        self._console.success("Upload completed successfully!")
        self._console.print("Install your app from:")
        self._console.print(upload.install_url, Style.INFO)
        return PipelineOutcome(result=Ok(upload), stages=stages)


def _require(value: T | None) -> T:
    # Stage handlers only run after the stage that fills the field.
    if value is None:
        raise RuntimeError("pipeline state is missing a value set by an earlier stage")
    return value
