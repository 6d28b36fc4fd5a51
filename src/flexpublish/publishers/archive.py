"""Archive artifacts publisher.

Copies files matching a set of glob patterns from the workspace into the
build's artifacts directory, preserving their relative paths.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from flexpublish.extension import publisher
from flexpublish.model import ProjectAction
from flexpublish.publishers.base import Publisher

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener, Launcher, Project

logger = logging.getLogger(__name__)


@publisher("archive", "Archive the artifacts")
class ArchiveArtifacts(Publisher):
    """Archive workspace files matching comma-separated glob patterns.

    Args:
        artifacts: Comma-separated glob patterns, relative to the workspace
        excludes: Comma-separated glob patterns to leave out
        allow_empty: Succeed even when nothing matches
    """

    def __init__(self, artifacts: str, excludes: str = "", allow_empty: bool = False) -> None:
        self.artifacts = artifacts
        self.excludes = excludes
        self.allow_empty = allow_empty

    def prebuild(self, build: Build, listener: BuildListener) -> bool:
        if not _split_patterns(self.artifacts):
            listener.error("No artifacts are configured for archiving")
            return False
        return self._check_patterns(listener)

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        listener.println("Archiving artifacts")
        if not self._check_patterns(listener):
            return False
        files = self._collect(build.workspace)

        if not files:
            if self.allow_empty:
                listener.println(f"No artifacts found that match the file pattern \"{self.artifacts}\"")
                return True
            listener.error(f"No artifacts found that match the file pattern \"{self.artifacts}\"")
            return False

        assert build.artifacts_dir is not None
        for relative in files:
            launcher.check_interrupted()
            target = build.artifacts_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(build.workspace / relative, target)
            logger.debug("Archived %s -> %s", relative, target)

        listener.println(f"Archived {len(files)} artifact(s)")
        return True

    def get_project_actions(self, project: Project) -> list[ProjectAction]:
        return [ProjectAction("Last Successful Artifacts", "lastSuccessfulBuild/artifact", "package.png")]

    def _check_patterns(self, listener: BuildListener) -> bool:
        """Patterns must stay inside the workspace."""
        for pattern in _split_patterns(self.artifacts) + _split_patterns(self.excludes):
            if _escapes_workspace(pattern):
                listener.error(f"Artifact pattern \"{pattern}\" must be relative to the workspace")
                return False
        return True

    def _collect(self, workspace: Path) -> list[Path]:
        excluded: set[Path] = set()
        for pattern in _split_patterns(self.excludes):
            excluded.update(p.relative_to(workspace) for p in workspace.glob(pattern))

        found: list[Path] = []
        for pattern in _split_patterns(self.artifacts):
            for path in sorted(workspace.glob(pattern)):
                relative = path.relative_to(workspace)
                if path.is_file() and relative not in excluded and relative not in found:
                    found.append(relative)
        return found


def _split_patterns(patterns: str) -> list[str]:
    return [p.strip() for p in patterns.split(",") if p.strip()]


def _escapes_workspace(pattern: str) -> bool:
    path = Path(pattern)
    return path.is_absolute() or ".." in path.parts
