"""Build lifecycle driver.

Runs the prebuild phase of every publisher, then the perform phase of every
publisher, each under its required execution monitor.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from flexpublish.extension import get_display_name
from flexpublish.model import Result

if TYPE_CHECKING:
    from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction
    from flexpublish.publishers.base import Publisher

logger = logging.getLogger(__name__)


class BuildRunner:
    """Drives a project's publishers through one build.

    Attributes:
        project: Project being built
        publishers: Publishers in execution order
    """

    def __init__(self, project: Project, publishers: Sequence[Publisher]) -> None:
        self.project = project
        self.publishers = list(publishers)
        logger.debug(
            "Publisher order for %s: %s",
            project.name,
            " → ".join(get_display_name(p) for p in self.publishers) or "(none)",
        )

    def project_actions(self) -> list[ProjectAction]:
        """Collect the project actions of every publisher."""
        actions: list[ProjectAction] = []
        for p in self.publishers:
            actions.extend(p.get_project_actions(self.project))
        return actions

    def run(self, build: Build, launcher: Launcher, listener: BuildListener) -> Result:
        """Run both lifecycle phases for ``build``.

        A publisher returning False from prebuild fails the build before any
        perform step runs. A publisher returning False from perform fails the
        build; later publishers still run, as they decide for themselves
        whether a failed build concerns them.

        Returns:
            Final build result

        Raises:
            OSError: Propagated from a publisher
            BuildInterruptedError: If the build is cancelled
        """
        logger.info("Starting build %s", build.display_name)

        for p in self.publishers:
            if not p.prebuild(build, listener):
                logger.info("Prebuild of %s failed", get_display_name(p))
                build.set_result(Result.FAILURE)
                return self._finish(build, listener)

        for p in self.publishers:
            launcher.check_interrupted()
            with p.required_monitor_service.hold(build, p):
                if not p.perform(build, launcher, listener):
                    logger.info("%s failed", get_display_name(p))
                    build.set_result(Result.FAILURE)

        return self._finish(build, listener)

    def _finish(self, build: Build, listener: BuildListener) -> Result:
        listener.println(f"Finished: {build.result.name}")
        logger.info("Build %s finished: %s", build.display_name, build.result.name)
        return build.result
