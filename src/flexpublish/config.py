"""Configuration management for flexpublish.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **FLEXPUBLISH_CONFIG_DIR Environment Variable** (Highest Priority)
   - Looks for: `${FLEXPUBLISH_CONFIG_DIR}/flexpublish.yaml`
   - Use case: CI agents, testing, custom deployments

2. **~/.flexpublish Directory** (Fallback)
   - Looks for: `~/.flexpublish/flexpublish.yaml`
   - Use case: Default user installations

If no `flexpublish.yaml` is found, default configuration is applied
(a freestyle project with no publishers).

Example flexpublish.yaml:
------------------------
flexpublish:
  project:
    name: webapp
    kind: freestyle
  extensions:
    - mycompany.flexpublish_kinds
  publishers:
    - condition: always
      publisher:
        kind: archive
        params:
          artifacts: "dist/*.whl"
    - condition:
        kind: status
        params: {worst: SUCCESS, best: SUCCESS}
      publisher:
        kind: shell
        params:
          command: ./deploy.sh
"""

import importlib
import logging
import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from flexpublish.conditional import ConditionalPublisher
from flexpublish.errors import ConfigurationError
from flexpublish.extension import CONDITION, PUBLISHER, ExtensionRegistry, get_registry
from flexpublish.flexible import FlexiblePublisher, is_applicable
from flexpublish.model import FREESTYLE_PROJECT, Project

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "flexpublish.yaml"


class ProjectConfig(BaseModel):
    """Project the publishers are attached to."""

    name: str = "default"
    """Project name"""

    kind: str = FREESTYLE_PROJECT
    """Qualified project kind (freestyle, matrix, ...)"""

    def to_project(self) -> Project:
        return Project(name=self.name, kind=self.kind)


class PublisherEntry(BaseModel):
    """One configured condition/publisher pair.

    Each side is either a bare kind id or a mapping with ``kind`` and
    optional ``params``.
    """

    condition: str | dict[str, Any] = "always"
    """Run condition kind"""

    publisher: str | dict[str, Any]
    """Wrapped publisher kind"""


class FlexPublishConfig(BaseSettings):
    """Main configuration for flexpublish that reads from flexpublish.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="FLEXPUBLISH_",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    project: ProjectConfig = Field(default_factory=ProjectConfig)

    # Import paths of modules that register extra condition/publisher kinds
    extensions: list[str] = Field(default_factory=list)

    publishers: list[PublisherEntry] = Field(default_factory=list)

    config_path: Path = Field(default_factory=lambda: Path("./flexpublish.yaml"))

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "FlexPublishConfig":
        """Load configuration from a flexpublish.yaml file.

        Args:
            yaml_path: Path to the flexpublish.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            FlexPublishConfig instance

        Raises:
            ConfigurationError: If the file is not valid configuration
        """
        if not yaml_path.exists():
            return cls(config_path=yaml_path, **kwargs)

        with yaml_path.open() as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {yaml_path}")

        section = data.get("flexpublish", {}) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'flexpublish' section in {yaml_path} must be a mapping")

        try:
            return cls(**{**section, **kwargs, "config_path": yaml_path})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {yaml_path}:\n{e}") from e

    def load_extensions(self) -> None:
        """Import extension modules so their kinds register.

        Raises:
            ConfigurationError: If an extension cannot be imported
        """
        for module_path in self.extensions:
            try:
                importlib.import_module(module_path)
            except ImportError as e:
                raise ConfigurationError(f"Failed to load extension {module_path}: {e}") from e
            logger.debug(f"Loaded extension: {module_path}")

    def build_publisher(self, registry: ExtensionRegistry | None = None) -> FlexiblePublisher:
        """Bind the configured entries into a flexible publisher.

        Args:
            registry: Registry to bind kinds from (defaults to the global one)

        Returns:
            FlexiblePublisher with one conditional publisher per entry, in order

        Raises:
            ConfigurationError: If the project kind can't host a flexible
                publisher or an entry can't be bound
        """
        registry = registry or get_registry()

        if not is_applicable(self.project.kind):
            raise ConfigurationError(f"Flexible publish is not available for '{self.project.kind}' projects")

        allowed = {d.id for d in registry.allowed_publishers(self.project.kind)}
        conditionals = []
        for index, entry in enumerate(self.publishers, start=1):
            publisher_data = {"kind": entry.publisher} if isinstance(entry.publisher, str) else entry.publisher
            kind_id = publisher_data.get("kind", "")
            try:
                condition = registry.bind(CONDITION, entry.condition)
                wrapped = registry.bind(PUBLISHER, publisher_data)
            except ConfigurationError as e:
                raise ConfigurationError(f"Publisher entry {index}: {e}") from e
            if kind_id not in allowed:
                raise ConfigurationError(
                    f"Publisher entry {index}: '{kind_id}' is not available for '{self.project.kind}' projects"
                )
            conditionals.append(ConditionalPublisher(condition=condition, publisher=wrapped))

        logger.debug(f"Configured {len(conditionals)} conditional publisher(s) for {self.project.name}")
        return FlexiblePublisher(conditionals)


def resolve_config_dir() -> Path:
    """Config directory: FLEXPUBLISH_CONFIG_DIR if set, else ~/.flexpublish."""
    env_config_dir = os.environ.get("FLEXPUBLISH_CONFIG_DIR")
    if env_config_dir:
        logger.info(f"Using config directory from environment: {env_config_dir}")
        return Path(env_config_dir)
    return Path.home() / ".flexpublish"


def load_config(config_dir: Path) -> FlexPublishConfig:
    """Load flexpublish.yaml from a directory, or defaults if absent."""
    config_path = config_dir / CONFIG_FILENAME
    if config_path.exists():
        logger.info(f"Loading flexpublish config from: {config_path}")
    else:
        logger.info(f"{CONFIG_FILENAME} not found at {config_path}, using default config")
    return FlexPublishConfig.from_yaml(config_path)


# Global configuration instance
_config_instance: FlexPublishConfig | None = None
_config_lock = threading.Lock()


def get_config() -> FlexPublishConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                _config_instance = load_config(resolve_config_dir())

    return _config_instance


def set_config_instance(config: FlexPublishConfig) -> None:
    """Replace the global configuration instance."""
    global _config_instance
    with _config_lock:
        _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
