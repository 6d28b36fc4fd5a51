"""Conditional publisher: one run condition gating one publisher.

Formal Model:
    Step sᵢ = (cᵢ, pᵢ) where:
        cᵢ: (Build, Phase) → Bool  (run condition)
        pᵢ: (Build, Phase) → Bool  (publisher)

    run(s, b, φ) = pᵢ(b, φ) if cᵢ(b, φ) else True

The condition is re-evaluated for every phase; nothing is cached between
prebuild and perform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flexpublish import messages
from flexpublish.extension import get_display_name

if TYPE_CHECKING:
    from flexpublish.conditions import RunCondition
    from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction
    from flexpublish.publishers.base import Publisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionalPublisher:
    """A publisher that only runs when its condition holds.

    Attributes:
        condition: Run condition evaluated at each phase
        publisher: Wrapped publisher
    """

    condition: RunCondition
    publisher: Publisher

    def get_project_actions(self, project: Project) -> list[ProjectAction]:
        """Project actions of the wrapped publisher, regardless of the condition."""
        return list(self.publisher.get_project_actions(project))

    def prebuild(self, build: Build, listener: BuildListener) -> bool:
        """Run the publisher's prebuild if the condition holds.

        Returns:
            The publisher's result, or True when skipped
        """
        if self.condition.run_prebuild(build, listener):
            self._log_running(listener, messages.STAGE_PREBUILD)
            return self.publisher.prebuild(build, listener)
        self._log_not_running(listener, messages.STAGE_PREBUILD)
        return True

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        """Run the publisher's perform step if the condition holds.

        Returns:
            The publisher's result, or True when skipped

        Raises:
            OSError: Propagated from the publisher
            BuildInterruptedError: Propagated from the publisher
        """
        if self.condition.run_perform(build, listener):
            self._log_running(listener, messages.STAGE_PERFORM)
            return self.publisher.perform(build, launcher, listener)
        self._log_not_running(listener, messages.STAGE_PERFORM)
        return True

    def _log_running(self, listener: BuildListener, stage: str) -> None:
        line = messages.condition_true(get_display_name(self.condition), stage, get_display_name(self.publisher))
        logger.debug(line)
        listener.println(line)

    def _log_not_running(self, listener: BuildListener, stage: str) -> None:
        line = messages.condition_false(get_display_name(self.condition), stage, get_display_name(self.publisher))
        logger.debug(line)
        listener.println(line)
