"""Conditional post-build publishers.

Wraps each post-build publisher in a run condition and runs the resulting
sequence in declared order, stopping at the first failure.

Formal Model:
    Flexible publisher F = [s₁, …, sₙ], each sᵢ = (cᵢ, pᵢ)

    run(F, b, φ) = ∧ᵢ run(sᵢ, b, φ), evaluated left to right,
                   stopping at the first False

Importing this package registers the built-in condition and publisher kinds.
"""

from flexpublish import conditions, publishers
from flexpublish.conditional import ConditionalPublisher
from flexpublish.conditions import RunCondition
from flexpublish.errors import BuildInterruptedError, ConfigurationError, FlexPublishError
from flexpublish.extension import ExtensionRegistry, get_display_name, get_registry, publisher, run_condition
from flexpublish.flexible import PROMOTION_JOB_TYPE, FlexiblePublisher
from flexpublish.model import Build, BuildListener, Launcher, Project, ProjectAction, Result
from flexpublish.publishers import BuildStepMonitor, Publisher
from flexpublish.runner import BuildRunner

__all__ = [
    "conditions",
    "publishers",
    "ConditionalPublisher",
    "FlexiblePublisher",
    "PROMOTION_JOB_TYPE",
    "RunCondition",
    "Publisher",
    "BuildStepMonitor",
    "BuildRunner",
    "Build",
    "BuildListener",
    "Launcher",
    "Project",
    "ProjectAction",
    "Result",
    "ExtensionRegistry",
    "get_registry",
    "get_display_name",
    "publisher",
    "run_condition",
    "FlexPublishError",
    "ConfigurationError",
    "BuildInterruptedError",
]
