"""Application services for appship.

Each stage of the release pipeline lives in its own module; the
controller in ``pipeline`` sequences them.
"""

from appship.services.build import BuildDriver
from appship.services.locator import ArtifactLocator
from appship.services.notify import Notifier
from appship.services.pipeline import PipelineController, PipelineOutcome, RunArgs, Stage
from appship.services.upload import DistributionClient

__all__ = [
    "ArtifactLocator",
    "BuildDriver",
    "DistributionClient",
    "Notifier",
    "PipelineController",
    "PipelineOutcome",
    "RunArgs",
    "Stage",
]
