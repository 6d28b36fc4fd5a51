"""Host-side build model.

Provides the objects a build hands to its publishers: the project being
built, the build itself, the console listener (log sink) and the launcher
(execution context for the perform phase).
"""

from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TextIO

from flexpublish.errors import BuildInterruptedError

logger = logging.getLogger(__name__)

FREESTYLE_PROJECT = "freestyle"
MATRIX_PROJECT = "matrix"

# Seconds between checks of the interrupt flag while a command runs
POLL_INTERVAL = 0.1

# Seconds a command gets to exit after SIGTERM before it is killed
KILL_TIMEOUT = 5.0


class Result(Enum):
    """Build result, ordered from best to worst."""

    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2
    NOT_BUILT = 3
    ABORTED = 4

    @classmethod
    def from_name(cls, name: str) -> Result:
        """Look up a result by case-insensitive name.

        Raises:
            ValueError: If the name is not a known result
        """
        try:
            return cls[name.strip().upper().replace("-", "_")]
        except KeyError:
            valid = ", ".join(r.name for r in cls)
            raise ValueError(f"Unknown build result '{name}' (expected one of: {valid})") from None

    def is_worse_than(self, other: Result) -> bool:
        return self.value > other.value

    def is_better_or_equal(self, other: Result) -> bool:
        return self.value <= other.value

    def combine(self, other: Result) -> Result:
        """Return the worse of the two results."""
        return other if other.is_worse_than(self) else self


@dataclass(frozen=True)
class Project:
    """A configured project.

    Attributes:
        name: Project name
        kind: Qualified project kind (e.g. ``freestyle``, ``matrix``)
    """

    name: str
    kind: str = FREESTYLE_PROJECT


@dataclass(frozen=True)
class ProjectAction:
    """A UI action contributed to a project page by a publisher."""

    display_name: str
    url_name: str
    icon: str | None = None


@dataclass
class Build:
    """A single execution of a project.

    Attributes:
        project: Project this build belongs to
        number: Build number
        result: Current result (only ever gets worse)
        workspace: Directory the build runs in
        artifacts_dir: Directory archived artifacts are copied to
        env: Build environment variables
    """

    project: Project
    number: int = 1
    result: Result = Result.SUCCESS
    workspace: Path = field(default_factory=Path.cwd)
    artifacts_dir: Path | None = None
    env: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.artifacts_dir is None:
            self.artifacts_dir = self.workspace / ".flexpublish" / str(self.number) / "archive"

    @property
    def display_name(self) -> str:
        return f"{self.project.name} #{self.number}"

    def set_result(self, result: Result) -> None:
        """Worsen the build result; a better result is ignored."""
        combined = self.result.combine(result)
        if combined is not self.result:
            logger.debug("Build %s result %s -> %s", self.display_name, self.result.name, combined.name)
        self.result = combined


class BuildListener:
    """Build console. Every line is kept in ``lines`` and echoed to ``stream``."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.lines: list[str] = []

    def println(self, line: str) -> None:
        self.lines.append(line)
        print(line, file=self.stream)

    def error(self, message: str) -> None:
        self.println(f"ERROR: {message}")


class Launcher:
    """Execution context for the perform phase.

    Runs commands in the build workspace and carries the cooperative
    cancellation flag for the build.
    """

    def __init__(self, workspace: Path, env: dict[str, str] | None = None) -> None:
        self.workspace = workspace
        self.env = dict(env or {})
        self._interrupted = threading.Event()

    def interrupt(self) -> None:
        """Request cancellation of the running build."""
        self._interrupted.set()

    def check_interrupted(self) -> None:
        """Raise if cancellation was requested.

        Raises:
            BuildInterruptedError: If ``interrupt()`` has been called
        """
        if self._interrupted.is_set():
            raise BuildInterruptedError("Build was interrupted")

    def launch(self, command: str, listener: BuildListener) -> int:
        """Run a shell command in the workspace, streaming output to the console.

        Args:
            command: Shell command line
            listener: Console receiving the command's output

        Returns:
            Process exit code

        Raises:
            OSError: If the process cannot be started
            BuildInterruptedError: If the build is interrupted while running
        """
        self.check_interrupted()
        listener.println(f"+ {command}")

        env = {**os.environ, **self.env}
        proc = subprocess.Popen(  # noqa: S602
            command,
            shell=True,
            cwd=self.workspace,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            start_new_session=True,
        )
        assert proc.stdout is not None
        reader = threading.Thread(target=_pump, args=(proc.stdout, listener), daemon=True)
        reader.start()

        while proc.poll() is None:
            if self._interrupted.wait(POLL_INTERVAL):
                logger.debug("Stopping '%s' (pid %d)", command, proc.pid)
                _stop(proc)
                break
        returncode = proc.wait()
        reader.join()

        self.check_interrupted()
        logger.debug("Command '%s' exited with %d", command, returncode)
        return returncode


def _pump(stream: TextIO, listener: BuildListener) -> None:
    with stream:
        for line in stream:
            listener.println(line.rstrip("\n"))


def _stop(proc: subprocess.Popen) -> None:
    """Terminate the command's process group, killing it if SIGTERM is ignored."""
    # The process group may already be gone
    with contextlib.suppress(ProcessLookupError):
        os.killpg(proc.pid, signal.SIGTERM)
    try:
        proc.wait(timeout=KILL_TIMEOUT)
    except subprocess.TimeoutExpired:
        with contextlib.suppress(ProcessLookupError):
            os.killpg(proc.pid, signal.SIGKILL)
