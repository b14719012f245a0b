"""Build driver: optional source sync, then the platform build.

The build tool (``flutter`` by default) is treated as an opaque
subprocess; only its exit status matters. Its output is streamed to the
console while it runs.

Sync policy: ``git pull`` and ``git submodule update`` failures are
reported as warnings and the run continues; a failed dependency fetch
(``flutter pub get``) is fatal.
"""

from __future__ import annotations

from appship.core.errors import BuildError
from appship.core.models import PipelineConfig, Platform
from appship.core.result import Err, Ok, Result
from appship.output.console import ConsoleProtocol, Style
from appship.platform.process import CommandRunner, ProcessError, stream

__all__ = ["BuildDriver", "EXPORT_OPTIONS"]

EXPORT_OPTIONS = ("ios", "ExportOptions.plist")


class BuildDriver:
    """Runs the sync and build commands inside the app directory."""

    def __init__(
        self,
        *,
        config: PipelineConfig,
        console: ConsoleProtocol,
        runner: CommandRunner = stream,
        flutter: str = "flutter",
    ) -> None:
        self._config = config
        self._console = console
        self._runner = runner
        self._flutter = flutter

    def _run(self, cmd: list[str]) -> Result[None, ProcessError]:
        self._console.print(" ".join(cmd), Style.DIM)
        result = self._runner(cmd, self._config.app_dir, on_output=self._console.output)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def sync(self) -> Result[None, BuildError]:
        """Pull sources, update submodules, fetch dependencies."""
        for cmd in (["git", "pull"], ["git", "submodule", "update"]):
            result = self._run(cmd)
            if isinstance(result, Err):
                step = " ".join(cmd)
                self._console.warning(
                    f"{step} failed with exit code {result.error.returncode}; continuing"
                )

        result = self._run([self._flutter, "pub", "get"])
        if isinstance(result, Err):
            return Err(
                BuildError(
                    step="pub get",
                    returncode=result.error.returncode,
                    message=result.error.message,
                )
            )
        return Ok(None)

    def build_command(self) -> list[str]:
        """The build invocation for the configured platform."""
        match self._config.platform:
            case Platform.IOS:
                cmd = [self._flutter, "build", "ipa"]
                export_options = self._config.app_path(*EXPORT_OPTIONS)
                if export_options.is_file():
                    cmd += ["--export-options-plist", str(export_options)]
                return cmd
            case Platform.ANDROID:
                return [self._flutter, "build", "appbundle"]

    def build(self) -> Result[None, BuildError]:
        """Build the installable artifact for the configured platform."""
        if self._config.platform == Platform.IOS:
            if self._config.app_path(*EXPORT_OPTIONS).is_file():
                self._console.info("using ios/ExportOptions.plist for IPA export")
            else:
                self._console.warning(
                    "ios/ExportOptions.plist not found, building without export options"
                )

        result = self._run(self.build_command())
        if isinstance(result, Err):
            return Err(
                BuildError(
                    step="build",
                    returncode=result.error.returncode,
                    message=result.error.message,
                )
            )
        return Ok(None)
