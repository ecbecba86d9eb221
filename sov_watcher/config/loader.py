"""
Configuration loader for SOV Watcher.

This module loads YAML files and validates them with Pydantic models:
pipeline settings (PipelineSettings) and analysis input (AnalysisRequest).

Functions:
    load_settings: Load and validate a pipeline settings file
    load_request: Load and validate an analysis input file
"""

from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from sov_watcher.exceptions import ConfigFileNotFoundError, ConfigValidationError

from .schema import AnalysisRequest, PipelineSettings

ModelT = TypeVar("ModelT", bound=BaseModel)


def _read_yaml(path: Path, allow_empty: bool) -> dict:
    """
    Read a YAML mapping from disk.

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML is invalid, empty (unless allowed),
            or not a mapping

    Security:
        Uses yaml.safe_load() to prevent code injection.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(f"Failed to read file {path}: {e}") from e

    if raw is None:
        if allow_empty:
            return {}
        raise ConfigValidationError(f"Configuration file is empty: {path}")

    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Top level of {path} must be a mapping, got {type(raw).__name__}"
        )

    return raw


def _validate(model: type[ModelT], raw: dict, path: Path) -> ModelT:
    """Validate raw data, formatting Pydantic errors with field paths."""
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigValidationError(
            f"Configuration validation failed in {path}:\n" + "\n".join(error_messages)
        ) from e


def load_settings(settings_path: str | Path | None = None) -> PipelineSettings:
    """
    Load pipeline settings from YAML.

    Passing None returns the defaults. An empty file is also valid and
    yields the defaults.

    Args:
        settings_path: Path to settings YAML, or None for defaults

    Returns:
        Validated PipelineSettings

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML or field validation fails

    Example:
        >>> settings = load_settings("examples/settings.yaml")
        >>> settings.entity_backend
        'regex'
    """
    if settings_path is None:
        return PipelineSettings()

    path = Path(settings_path)
    return _validate(PipelineSettings, _read_yaml(path, allow_empty=True), path)


def load_request(request_path: str | Path) -> AnalysisRequest:
    """
    Load an analysis input file (brand, competitors, topic, answers).

    Args:
        request_path: Path to input YAML (JSON is valid YAML too)

    Returns:
        Validated AnalysisRequest

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML is invalid, empty, or fails validation
    """
    path = Path(request_path)
    return _validate(AnalysisRequest, _read_yaml(path, allow_empty=False), path)
