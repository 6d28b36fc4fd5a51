"""Post-build publishers.

Importing this package registers the built-in publisher kinds.
"""

from flexpublish.publishers.archive import ArchiveArtifacts
from flexpublish.publishers.base import BuildStepMonitor, Publisher
from flexpublish.publishers.set_result import SetResultPublisher
from flexpublish.publishers.shell import ShellPublisher

__all__ = [
    "Publisher",
    "BuildStepMonitor",
    "ShellPublisher",
    "ArchiveArtifacts",
    "SetResultPublisher",
]
