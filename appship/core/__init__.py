"""Core domain: results, errors, data model and run configuration."""

from .errors import (
    ArtifactNotFoundError,
    BuildError,
    ConfigError,
    ErrorCode,
    NotificationWarning,
    PipelineError,
    ProtocolError,
    UploadError,
)
from .models import (
    AppIdentity,
    BuildArtifact,
    DistributionCredentials,
    Mode,
    NotificationConfig,
    PipelineConfig,
    Platform,
    UploadResult,
)
from .result import Err, Ok, Result

__all__ = [
    # result
    "Err",
    "Ok",
    "Result",
    # errors
    "ArtifactNotFoundError",
    "BuildError",
    "ConfigError",
    "ErrorCode",
    "NotificationWarning",
    "PipelineError",
    "ProtocolError",
    "UploadError",
    # models
    "AppIdentity",
    "BuildArtifact",
    "DistributionCredentials",
    "Mode",
    "NotificationConfig",
    "PipelineConfig",
    "Platform",
    "UploadResult",
]
