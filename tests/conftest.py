"""Shared fixtures: recording fakes for run conditions and publishers."""

from pathlib import Path
from typing import Any

import pytest

from flexpublish.conditions import RunCondition
from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction
from flexpublish.publishers.base import Publisher


def _answer(answer: bool | BaseException) -> bool:
    if isinstance(answer, BaseException):
        raise answer
    return answer


class FakeCondition(RunCondition):
    """Run condition with fixed answers per phase that records each evaluation.

    An answer may be an exception instance, which is raised instead.
    """

    def __init__(
        self,
        calls: list[str],
        display_name: str,
        prebuild: bool | BaseException = True,
        perform: bool | BaseException = True,
    ) -> None:
        self.calls = calls
        self.display_name = display_name
        self.prebuild_answer = prebuild
        self.perform_answer = perform

    def run_prebuild(self, build: Build, listener: BuildListener) -> bool:
        self.calls.append(f"{self.display_name}.condition.prebuild")
        return _answer(self.prebuild_answer)

    def run_perform(self, build: Build, listener: BuildListener) -> bool:
        self.calls.append(f"{self.display_name}.condition.perform")
        return _answer(self.perform_answer)


class FakePublisher(Publisher):
    """Publisher with fixed results per phase that records each invocation.

    ``perform`` may be an exception instance, which is raised instead.
    """

    def __init__(
        self,
        calls: list[str],
        display_name: str,
        prebuild: bool = True,
        perform: bool | BaseException = True,
        actions: list[ProjectAction] | None = None,
    ) -> None:
        self.calls = calls
        self.display_name = display_name
        self.prebuild_result = prebuild
        self.perform_result = perform
        self.actions = actions if actions is not None else [ProjectAction(f"{display_name} report", display_name)]

    def prebuild(self, build: Build, listener: BuildListener) -> bool:
        self.calls.append(f"{self.display_name}.prebuild")
        return self.prebuild_result

    def perform(self, build: Build, launcher: Launcher, listener: BuildListener) -> bool:
        self.calls.append(f"{self.display_name}.perform")
        if isinstance(self.perform_result, BaseException):
            raise self.perform_result
        return self.perform_result

    def get_project_actions(self, project: Project) -> list[ProjectAction]:
        self.calls.append(f"{self.display_name}.actions")
        return list(self.actions)


@pytest.fixture
def calls() -> list[str]:
    """Invocation log shared by fakes created in one test."""
    return []


@pytest.fixture
def make_condition(calls):
    def factory(name: str = "Always", **answers: Any) -> FakeCondition:
        return FakeCondition(calls, name, **answers)

    return factory


@pytest.fixture
def make_publisher(calls):
    def factory(name: str = "Archive", **results: Any) -> FakePublisher:
        return FakePublisher(calls, name, **results)

    return factory


@pytest.fixture
def project() -> Project:
    return Project(name="webapp")


@pytest.fixture
def build(project: Project, tmp_path: Path) -> Build:
    return Build(project=project, number=7, workspace=tmp_path)


@pytest.fixture
def listener() -> BuildListener:
    return BuildListener()


@pytest.fixture
def launcher(tmp_path: Path) -> Launcher:
    return Launcher(tmp_path)
