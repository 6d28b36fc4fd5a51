"""Publisher base class and execution monitors."""

from __future__ import annotations

import contextlib
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction


class BuildStepMonitor(Enum):
    """Concurrency scope a publisher needs while performing.

    NONE: runs concurrently with anything
    STEP: exclusive against the same publisher kind in other builds
    BUILD: exclusive against the whole build of the same project
    """

    NONE = "none"
    STEP = "step"
    BUILD = "build"

    @contextlib.contextmanager
    def hold(self, build: Build, publisher: Publisher) -> Iterator[None]:
        """Hold the monitor's lock while performing ``publisher``."""
        if self is BuildStepMonitor.NONE:
            yield
            return
        if self is BuildStepMonitor.BUILD:
            key = f"build:{build.project.name}"
        else:
            key = f"step:{build.project.name}:{type(publisher).__qualname__}"
        with _lock_for(key):
            yield


# One lock per project, plus one per project and publisher class for STEP.
# Keys are bounded by the projects a host builds, so entries are never evicted.
_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(key: str) -> threading.RLock:
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


class Publisher(ABC):
    """Base class for post-build publishers.

    ``prebuild`` and ``get_project_actions`` have no-op defaults; ``perform``
    must be implemented.
    """

    @property
    def required_monitor_service(self) -> BuildStepMonitor:
        return BuildStepMonitor.STEP

    def prebuild(self, build: Build, listener: BuildListener) -> bool:
        """Validate before the build runs. Returning False fails the build."""
        return True

    @abstractmethod
    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        """Run the publisher.

        Raises:
            OSError: On I/O failure
            BuildInterruptedError: If the build is cancelled
        """

    def get_project_actions(self, project: Project) -> list[ProjectAction]:
        """UI actions this publisher contributes to the project page."""
        return []
