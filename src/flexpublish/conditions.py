"""Run conditions.

A run condition is evaluated once per lifecycle phase of a build. Both
phases are evaluated independently since a build may change state (for
example its result) between prebuild and perform.
"""

from __future__ import annotations

import logging
import string
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from flexpublish.errors import ConfigurationError
from flexpublish.extension import run_condition
from flexpublish.model import Result

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener

logger = logging.getLogger(__name__)

TRUTHY_TOKENS = frozenset({"true", "y", "yes", "on", "1"})


class RunCondition(ABC):
    """Base class for run conditions.

    Subclasses implement ``run_perform``; ``run_prebuild`` defaults to the
    same check.
    """

    def run_prebuild(self, build: Build, listener: BuildListener) -> bool:
        """Decide whether the wrapped publisher runs its prebuild."""
        return self.run_perform(build, listener)

    @abstractmethod
    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        """Decide whether the wrapped publisher runs its perform step."""


@run_condition("always", "Always")
class AlwaysRun(RunCondition):
    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        return True


@run_condition("never", "Never")
class NeverRun(RunCondition):
    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        return False


@run_condition("status", "Current build status")
class StatusCondition(RunCondition):
    """Run when the current build result lies between ``worst`` and ``best``.

    Both bounds are inclusive.
    """

    def __init__(self, worst: str = "FAILURE", best: str = "SUCCESS") -> None:
        try:
            self.worst = Result.from_name(worst)
            self.best = Result.from_name(best)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if self.best.is_worse_than(self.worst):
            raise ConfigurationError(f"Best status {self.best.name} is worse than worst status {self.worst.name}")

    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        result = build.result
        return result.is_better_or_equal(self.worst) and self.best.is_better_or_equal(result)


@run_condition("file-exists", "File exists")
class FileExistsCondition(RunCondition):
    """Run when a file exists, relative to the build workspace."""

    def __init__(self, file: str) -> None:
        self.file = file

    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        path = build.workspace / Path(_expand(self.file, build))
        exists = path.exists()
        logger.debug("File %s exists: %s", path, exists)
        return exists


@run_condition("boolean", "Boolean condition")
class BooleanCondition(RunCondition):
    """Run when a token, expanded against the build environment, is truthy.

    Truthy values are ``true``, ``y``, ``yes``, ``on`` and ``1``
    (case-insensitive); anything else, including an empty string, is false.
    """

    def __init__(self, token: str) -> None:
        self.token = token

    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        value = _expand(self.token, build).strip().lower()
        return value in TRUTHY_TOKENS


def _expand(value: str, build: Build) -> str:
    """Expand ``$VAR`` and ``${VAR}`` against the build environment."""
    return string.Template(value).safe_substitute(build.env)
