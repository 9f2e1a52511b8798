"""Configuration file support for operator-audit."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from operator_audit.utils.errors import ConfigurationError

DEFAULT_CATALOGS: dict[str, str] = {
    "redhat_certified_operator_index": "registry.redhat.io/redhat/certified-operator-index",
    "redhat_community_operator_index": "registry.redhat.io/redhat/community-operator-index",
    "redhat_redhat_marketplace_index": "registry.redhat.io/redhat/redhat-marketplace-index",
    "redhat_redhat_operator_index": "registry.redhat.io/redhat/redhat-operator-index",
    "operatorhubio_catalog": "quay.io/operatorhubio/catalog",
}


class RunConfig(BaseModel):
    """Options controlling a single audit run."""

    output_path: str = Field(default=".", description="Directory where reports are written")
    work_dir: str = Field(default="./tmp", description="Scratch directory for unpacked bundles")
    disable_scorecard: bool = Field(default=False, description="Skip the scorecard checks")
    disable_validators: bool = Field(default=False, description="Skip the bundle validators")
    server_mode: bool = Field(
        default=False,
        description="Keep pulled images in the local cache between runs",
    )
    label: str | None = Field(default=None, description="Image label to look for")
    label_value: str | None = Field(default=None, description="Expected value of the label")
    container_engine: str = Field(default="docker", description="Container runtime binary")
    scorecard_wait_time: str = Field(default="120s", description="Scorecard --wait-time value")
    command_timeout: float | None = Field(
        default=None,
        description="Per-command timeout in seconds (None waits forever)",
    )
    head_only: bool = Field(default=False, description="Audit only the heads of the channels")
    filter: str | None = Field(default=None, description="Only audit packages containing this name")
    limit: int | None = Field(default=None, description="Maximum number of report rows")


class AuditConfig(BaseModel):
    """Main configuration for operator-audit."""

    run: RunConfig = Field(default_factory=RunConfig)
    reports_path: str = Field(
        default="docs/reports",
        description="Root of the published reports tree used by the dashboard index",
    )
    catalogs: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_CATALOGS),
        description="Report directory name -> catalog image path",
    )


USER_CONFIG = Path.home() / ".operator-audit" / "config.yaml"
CWD_CONFIG_NAMES = (".operator-audit.yaml", ".operator-audit.yml")


def get_config_paths() -> list[Path]:
    """Config files searched in order, the first existing one winning."""
    paths = [Path.cwd() / name for name in CWD_CONFIG_NAMES]
    paths.append(USER_CONFIG)
    if os.environ.get("XDG_CONFIG_HOME"):
        paths.append(Path(os.environ["XDG_CONFIG_HOME"]) / "operator-audit" / "config.yaml")
    return paths


def load_config(config_path: Path | str | None = None) -> AuditConfig:
    """Load the configuration.

    An explicit path must exist. Without one, the search path is tried and
    the defaults are used when no file is found.

    Raises:
        ConfigurationError: If an explicit file is missing or any file is invalid
    """
    if config_path is not None:
        explicit = Path(config_path)
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {config_path}")
        return _read_config(explicit)

    found = next((p for p in get_config_paths() if p.is_file()), None)
    return _read_config(found) if found else AuditConfig()


def _read_config(path: Path) -> AuditConfig:
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

    if not data:
        return AuditConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Failed to load config file {path}: expected a mapping")
    try:
        return AuditConfig.model_validate(data)
    except ValueError as e:
        raise ConfigurationError(f"Failed to load config file {path}: {e}") from e


def save_config(config: AuditConfig, config_path: Path | str | None = None) -> Path:
    """Write the non-default settings of `config` as YAML.

    Defaults to the user config file, creating its directory.
    """
    target = Path(config_path) if config_path is not None else USER_CONFIG
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.safe_dump(
            config.model_dump(mode="json", exclude_defaults=True),
            default_flow_style=False,
            sort_keys=False,
        )
    )
    return target


_config: AuditConfig | None = None


def get_config() -> AuditConfig:
    """Get the global configuration instance, loading it on first call."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: AuditConfig | None) -> None:
    """Set (or reset with None) the global configuration instance."""
    global _config
    _config = config
