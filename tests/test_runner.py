"""Tests for the build lifecycle driver."""

import logging

import pytest

from flexpublish.conditional import ConditionalPublisher
from flexpublish.conditions import StatusCondition
from flexpublish.errors import BuildInterruptedError
from flexpublish.flexible import FlexiblePublisher
from flexpublish.model import Result
from flexpublish.publishers import SetResultPublisher
from flexpublish.runner import BuildRunner


class TestBuildRunner:
    def test_prebuild_completes_before_perform(
        self, make_condition, make_publisher, project, build, launcher, listener, calls
    ) -> None:
        flexible = FlexiblePublisher(
            [
                ConditionalPublisher(make_condition("A"), make_publisher("A")),
                ConditionalPublisher(make_condition("B"), make_publisher("B")),
            ]
        )

        result = BuildRunner(project, [flexible]).run(build, launcher, listener)

        assert result is Result.SUCCESS
        assert [c for c in calls if ".condition." not in c] == ["A.prebuild", "B.prebuild", "A.perform", "B.perform"]
        assert listener.lines[-1] == "Finished: SUCCESS"

    def test_failed_prebuild_skips_perform(self, make_publisher, project, build, launcher, listener, calls) -> None:
        runner = BuildRunner(project, [make_publisher("A", prebuild=False), make_publisher("B")])

        assert runner.run(build, launcher, listener) is Result.FAILURE
        assert calls == ["A.prebuild"]

    def test_failed_perform_marks_failure(self, make_publisher, project, build, launcher, listener, calls) -> None:
        runner = BuildRunner(project, [make_publisher("A", perform=False), make_publisher("B")])

        assert runner.run(build, launcher, listener) is Result.FAILURE
        assert "B.perform" in calls

    def test_conditions_see_result_set_by_earlier_step(self, project, build, launcher, listener) -> None:
        flexible = FlexiblePublisher(
            [
                ConditionalPublisher(StatusCondition("SUCCESS", "SUCCESS"), SetResultPublisher("UNSTABLE")),
                ConditionalPublisher(StatusCondition("SUCCESS", "SUCCESS"), SetResultPublisher("FAILURE")),
            ]
        )

        result = BuildRunner(project, [flexible]).run(build, launcher, listener)

        assert result is Result.UNSTABLE
        assert listener.lines[-2] == "Condition [Current build status] is not met, continue to next perform step"

    def test_interruption_propagates(self, make_publisher, project, build, launcher, listener, calls) -> None:
        runner = BuildRunner(project, [make_publisher("A"), make_publisher("B")])
        launcher.interrupt()

        with pytest.raises(BuildInterruptedError):
            runner.run(build, launcher, listener)
        assert "A.perform" not in calls

    def test_project_actions(self, make_publisher, project) -> None:
        runner = BuildRunner(project, [make_publisher("A"), make_publisher("B")])

        assert [a.url_name for a in runner.project_actions()] == ["A", "B"]

    def test_logs_start_and_finish(self, make_publisher, project, build, launcher, listener, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="flexpublish.runner"):
            BuildRunner(project, [make_publisher("A")]).run(build, launcher, listener)

        assert "Starting build webapp #7" in caplog.text
        assert "Build webapp #7 finished: SUCCESS" in caplog.text
