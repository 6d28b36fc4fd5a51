"""Extension descriptors and registry.

Run conditions and publishers are registered as *kinds* with the
``@run_condition`` and ``@publisher`` class decorators. A descriptor carries
the kind's display name, how to construct it from configuration, and whether
it may be offered for wrapping inside a flexible publisher.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from flexpublish.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONDITION = "condition"
PUBLISHER = "publisher"

FLEXIBLE_PUBLISH_ID = "flexible-publish"

ApplicableFn = Callable[[str], bool]

T = TypeVar("T", bound=type)


def always_applicable(project_kind: str) -> bool:
    """Default applicability: every project kind."""
    return True


@dataclass
class Descriptor:
    """Metadata for a registered run condition or publisher kind.

    Attributes:
        id: Unique kind identifier used in configuration
        display_name: Human readable name used in console messages
        factory: Callable constructing an instance from configuration params
        category: ``condition`` or ``publisher``
        bindable: Whether instances can be constructed from configuration data
        ordinal: Sort key among publishers; higher values are listed later
        applicable: Predicate over project kinds
    """

    id: str
    display_name: str
    factory: Callable[..., Any]
    category: str
    bindable: bool = True
    ordinal: int = 0
    applicable: ApplicableFn = field(default=always_applicable)

    def is_applicable(self, project_kind: str) -> bool:
        return self.applicable(project_kind)

    def new_instance(self, params: dict[str, Any] | None = None) -> Any:
        """Construct an instance from configuration params.

        Raises:
            ConfigurationError: If the kind is not bindable or the params don't fit
        """
        if not self.bindable:
            raise ConfigurationError(f"{self.category.capitalize()} '{self.id}' cannot be configured")
        params = params or {}
        try:
            inspect.signature(self.factory).bind(**params)
        except TypeError as e:
            raise ConfigurationError(f"Invalid params for {self.category} '{self.id}': {e}") from e
        return self.factory(**params)


class ExtensionRegistry:
    """Registration table of run condition and publisher kinds."""

    def __init__(self) -> None:
        self._descriptors: dict[str, dict[str, Descriptor]] = {CONDITION: {}, PUBLISHER: {}}

    def register(self, descriptor: Descriptor) -> None:
        """Register a descriptor, replacing any previous one with the same id."""
        kinds = self._descriptors[descriptor.category]
        if descriptor.id in kinds:
            logger.debug("Replacing %s kind '%s'", descriptor.category, descriptor.id)
        kinds[descriptor.id] = descriptor

    def unregister(self, category: str, kind_id: str) -> Descriptor | None:
        """Remove a kind, returning its descriptor if it was registered."""
        return self._descriptors[category].pop(kind_id, None)

    def get(self, category: str, kind_id: str) -> Descriptor | None:
        return self._descriptors[category].get(kind_id)

    def run_conditions(self) -> list[Descriptor]:
        """All registered run condition kinds, in registration order."""
        return list(self._descriptors[CONDITION].values())

    def publishers(self) -> list[Descriptor]:
        """All registered publisher kinds, ordered by ordinal."""
        return sorted(self._descriptors[PUBLISHER].values(), key=lambda d: d.ordinal)

    def allowed_publishers(self, project_kind: str | None) -> list[Descriptor]:
        """Publisher kinds that may be wrapped by a conditional publisher.

        Excludes the flexible publisher itself, kinds that can't be built from
        configuration, and kinds not applicable to ``project_kind``.

        Args:
            project_kind: Kind of the project being configured, if known

        Returns:
            Eligible descriptors; empty when there is no project
        """
        if project_kind is None:
            return []
        allowed = []
        for descriptor in self.publishers():
            if descriptor.id == FLEXIBLE_PUBLISH_ID:
                continue
            if not descriptor.bindable:
                continue
            if descriptor.is_applicable(project_kind):
                allowed.append(descriptor)
        return allowed

    def bind(self, category: str, data: dict[str, Any] | str) -> Any:
        """Construct a condition or publisher from configuration data.

        Args:
            category: ``condition`` or ``publisher``
            data: ``{"kind": id, "params": {...}}`` or a bare kind id

        Returns:
            New instance of the configured kind

        Raises:
            ConfigurationError: On unknown, unbindable or self-nesting kinds
        """
        if isinstance(data, str):
            data = {"kind": data}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid {category} entry: {data!r}")

        kind_id = data.get("kind", "")
        if not kind_id:
            raise ConfigurationError(f"{category.capitalize()} entry missing 'kind': {data}")
        if category == PUBLISHER and kind_id == FLEXIBLE_PUBLISH_ID:
            raise ConfigurationError("A flexible publisher cannot wrap another flexible publisher")

        descriptor = self.get(category, kind_id)
        if descriptor is None:
            raise ConfigurationError(f"Unknown {category} kind '{kind_id}'")

        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ConfigurationError(f"Params for {category} '{kind_id}' must be a mapping")

        instance = descriptor.new_instance(params)
        logger.debug("Bound %s '%s'%s", category, kind_id, f" with params: {params}" if params else "")
        return instance

    def clear(self) -> None:
        """Clear all registered kinds (for testing)."""
        for kinds in self._descriptors.values():
            kinds.clear()


# Global registry
_registry = ExtensionRegistry()


def get_registry() -> ExtensionRegistry:
    """Get the global extension registry."""
    return _registry


def _register_class(
    cls: type,
    category: str,
    kind_id: str,
    display_name: str,
    registry: ExtensionRegistry | None,
    **options: Any,
) -> None:
    descriptor = Descriptor(
        id=kind_id,
        display_name=display_name,
        factory=cls,
        category=category,
        **options,
    )
    (registry or _registry).register(descriptor)
    # Attach descriptor to the class for display-name lookup
    cls.descriptor = descriptor  # type: ignore[attr-defined]


def run_condition(
    kind_id: str,
    display_name: str,
    *,
    registry: ExtensionRegistry | None = None,
) -> Callable[[T], T]:
    """Class decorator registering a run condition kind.

    Example:
        @run_condition("always", "Always")
        class AlwaysRun(RunCondition):
            ...
    """

    def decorator(cls: T) -> T:
        _register_class(cls, CONDITION, kind_id, display_name, registry)
        return cls

    return decorator


def publisher(
    kind_id: str,
    display_name: str,
    *,
    bindable: bool = True,
    ordinal: int = 0,
    applicable: ApplicableFn | None = None,
    registry: ExtensionRegistry | None = None,
) -> Callable[[T], T]:
    """Class decorator registering a publisher kind.

    Args:
        kind_id: Unique kind identifier
        display_name: Name used in console messages
        bindable: Whether the kind can be constructed from configuration
        ordinal: Sort key; higher values run later
        applicable: Predicate over project kinds (defaults to all)
        registry: Registry to use instead of the global one
    """

    def decorator(cls: T) -> T:
        _register_class(
            cls,
            PUBLISHER,
            kind_id,
            display_name,
            registry,
            bindable=bindable,
            ordinal=ordinal,
            applicable=applicable or always_applicable,
        )
        return cls

    return decorator


def get_display_name(describable: Any) -> str:
    """Display name of a condition or publisher instance.

    Uses the registered descriptor, then a ``display_name`` attribute, then
    the class name.
    """
    descriptor = getattr(describable, "descriptor", None)
    if isinstance(descriptor, Descriptor):
        return descriptor.display_name
    name = getattr(describable, "display_name", None)
    if isinstance(name, str) and name:
        return name
    return type(describable).__name__
