"""Client for the appho.st distribution protocol.

An upload is three calls, each gating the next:

1. ``GET /api/get_upload_url`` returns a bare, single-use HTTPS URL.
2. ``PUT <that URL>`` with the artifact bytes.
3. ``GET /api/get_current_version/`` returns JSON with the install ``url``.

There are no retries: the first failing call ends the upload.
"""

from __future__ import annotations

import re

from appship.core.errors import ProtocolError, UploadError
from appship.core.models import (
    AppIdentity,
    BuildArtifact,
    DistributionCredentials,
    Platform,
    UploadResult,
)
from appship.core.result import Err, Ok, Result
from appship.core.structured import get_str, loads_object
from appship.net.http import HttpClient
from appship.output.console import ConsoleProtocol

__all__ = ["DEFAULT_API_URL", "DistributionClient", "extract_install_url"]

DEFAULT_API_URL = "https://appho.st"

_SECURE_PREFIX = "https://"
_URL_FIELD = re.compile(r'"url"\s*:\s*"([^"]+)"')


def _snippet(body: str, limit: int = 200) -> str:
    text = body.strip()
    return text if len(text) <= limit else text[:limit] + "..."


def extract_install_url(body: str) -> str | None:
    """Pull the install URL out of a get_current_version response.

    The service sometimes sends malformed JSON around a well-formed
    ``"url"`` member, so a regex over the raw text backs up the JSON parse.
    """
    data = loads_object(body)
    if data is not None:
        url = get_str(data, "url")
        if url is not None:
            return url

    match = _URL_FIELD.search(body)
    return match.group(1) if match else None


class DistributionClient:
    def __init__(
        self,
        *,
        http: HttpClient,
        console: ConsoleProtocol,
        base_url: str = DEFAULT_API_URL,
    ) -> None:
        self._http = http
        self._console = console
        self._base_url = base_url.rstrip("/")

    def get_upload_url(
        self,
        credentials: DistributionCredentials,
        platform: Platform,
        version: str,
        bundle_id: str,
    ) -> Result[str, ProtocolError]:
        """Step 1: obtain a single-use upload target."""
        params = {
            "user_id": credentials.user_id,
            "app_id": credentials.app_id,
            "key": credentials.secret_key,
            "platform": platform.value,
            "version": version,
            platform.bundle_id_key: bundle_id,
        }
        result = self._http.get_text(f"{self._base_url}/api/get_upload_url", params)
        if isinstance(result, Err):
            return Err(ProtocolError(step="get_upload_url", message=str(result.error)))

        response = result.value
        if response.status != 200:
            return Err(
                ProtocolError(
                    step="get_upload_url",
                    message=f"HTTP {response.status} - {_snippet(response.body)}",
                )
            )

        upload_url = response.body.strip()
        if not upload_url.startswith(_SECURE_PREFIX):
            return Err(
                ProtocolError(
                    step="get_upload_url",
                    message=f"unexpected response: {_snippet(upload_url) or '(empty)'}",
                )
            )
        return Ok(upload_url)

    def put_artifact(self, upload_url: str, artifact: BuildArtifact) -> Result[None, UploadError]:
        """Step 2: send the artifact bytes to the upload target."""
        missing = Err(UploadError(status=0, message=f"build file not found: {artifact.path}"))
        if not artifact.path.is_file():
            return missing
        try:
            size = artifact.size
        except OSError:
            return missing

        self._console.print(f"Uploading {artifact.path.name} ({size} bytes)...")
        result = self._http.put_file(
            upload_url,
            artifact.path,
            {
                "Content-Type": "application/octet-stream",
                "Content-Length": str(size),
            },
        )
        if isinstance(result, Err):
            return Err(UploadError(status=0, message=str(result.error)))

        response = result.value
        if response.status != 200:
            return Err(UploadError(status=response.status, message=_snippet(response.body)))
        return Ok(None)

    def get_install_url(
        self, credentials: DistributionCredentials, platform: Platform
    ) -> Result[str, ProtocolError]:
        """Step 3: look up the install link of the current version."""
        params = {"u": credentials.user_id, "a": credentials.app_id, "platform": platform.value}
        result = self._http.get_text(f"{self._base_url}/api/get_current_version/", params)
        if isinstance(result, Err):
            return Err(ProtocolError(step="get_install_url", message=str(result.error)))

        response = result.value
        if response.status != 200:
            return Err(
                ProtocolError(
                    step="get_install_url",
                    message=f"HTTP {response.status} - {_snippet(response.body)}",
                )
            )

        install_url = extract_install_url(response.body)
        if install_url is None:
            return Err(
                ProtocolError(
                    step="get_install_url",
                    message=f"could not parse install URL from response: {_snippet(response.body)}",
                )
            )
        return Ok(install_url)

    def upload(
        self,
        credentials: DistributionCredentials,
        identity: AppIdentity,
        artifact: BuildArtifact,
    ) -> Result[UploadResult, ProtocolError | UploadError]:
        """Run the three protocol calls in order, stopping at the first failure."""
        self._console.print("Fetching upload URL...")
        upload_url = self.get_upload_url(
            credentials, artifact.platform, identity.version, identity.bundle_id
        )
        if isinstance(upload_url, Err):
            return upload_url

        put = self.put_artifact(upload_url.value, artifact)
        if isinstance(put, Err):
            return put
        self._console.success("file uploaded")

        self._console.print("Fetching install URL...")
        install_url = self.get_install_url(credentials, artifact.platform)
        if isinstance(install_url, Err):
            return install_url
        return Ok(UploadResult(install_url=install_url.value))
