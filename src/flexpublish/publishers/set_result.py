"""Set build result publisher."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flexpublish.errors import ConfigurationError
from flexpublish.extension import publisher
from flexpublish.model import Result
from flexpublish.publishers.base import BuildStepMonitor, Publisher

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener, Launcher


@publisher("set-result", "Set build result")
class SetResultPublisher(Publisher):
    """Worsen the build result. Later conditions see the new result."""

    def __init__(self, result: str = "UNSTABLE") -> None:
        try:
            self.result = Result.from_name(result)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @property
    def required_monitor_service(self) -> BuildStepMonitor:
        return BuildStepMonitor.NONE

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        listener.println(f"Setting build result to {self.result.name}")
        build.set_result(self.result)
        return True
