"""Flexible publisher: an ordered sequence of conditional publishers.

Each lifecycle phase walks the sequence in declared order and stops at the
first publisher that returns False or raises. Project action collection
always visits every step.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from flexpublish import messages
from flexpublish.extension import FLEXIBLE_PUBLISH_ID, publisher
from flexpublish.model import MATRIX_PROJECT
from flexpublish.publishers.base import BuildStepMonitor, Publisher

if TYPE_CHECKING:
    from flexpublish.conditional import ConditionalPublisher
    from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction

logger = logging.getLogger(__name__)

PROMOTION_JOB_TYPE = "hudson.plugins.promoted_builds.PromotionProcess"

# Sorts after nearly every other publisher kind
ORDINAL = 2**31 - 1 - 500


def is_applicable(project_kind: str) -> bool:
    """Whether a flexible publisher can be added to a project of this kind.

    Matrix projects need result aggregation across configurations, which is
    not supported. Promotion processes are excluded by exact name.
    """
    # TODO: enable for matrix projects once per-configuration results can be aggregated
    return project_kind != MATRIX_PROJECT and project_kind != PROMOTION_JOB_TYPE


@publisher(
    FLEXIBLE_PUBLISH_ID,
    messages.PUBLISHER_DISPLAY_NAME,
    bindable=False,
    ordinal=ORDINAL,
    applicable=is_applicable,
)
class FlexiblePublisher(Publisher):
    """Runs a list of conditional publishers in order.

    The list is replaced wholesale on reconfiguration and never mutated
    while a build is running.
    """

    def __init__(self, publishers: Iterable[ConditionalPublisher] = ()) -> None:
        self._publishers: tuple[ConditionalPublisher, ...] = tuple(publishers)

    @property
    def publishers(self) -> list[ConditionalPublisher]:
        return list(self._publishers)

    @property
    def required_monitor_service(self) -> BuildStepMonitor:
        return BuildStepMonitor.BUILD

    def get_project_actions(self, project: Project) -> list[ProjectAction]:
        actions: list[ProjectAction] = []
        for conditional in self._publishers:
            actions.extend(conditional.get_project_actions(project))
        return actions

    def prebuild(self, build: Build, listener: BuildListener) -> bool:
        for conditional in self._publishers:
            if not conditional.prebuild(build, listener):
                logger.debug("Prebuild stopped at %r", conditional)
                return False
        return True

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        for conditional in self._publishers:
            if not conditional.perform(build, launcher, listener):
                logger.debug("Perform stopped at %r", conditional)
                return False
        return True
