"""Execute shell publisher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flexpublish.extension import publisher
from flexpublish.publishers.base import BuildStepMonitor, Publisher

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener, Launcher

logger = logging.getLogger(__name__)


@publisher("shell", "Execute shell")
class ShellPublisher(Publisher):
    """Run a shell command in the workspace; succeed on exit code 0."""

    def __init__(self, command: str) -> None:
        self.command = command

    @property
    def required_monitor_service(self) -> BuildStepMonitor:
        return BuildStepMonitor.NONE

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        returncode = launcher.launch(self.command, listener)
        if returncode != 0:
            listener.println(f"Command exited with code {returncode}")
            return False
        return True
