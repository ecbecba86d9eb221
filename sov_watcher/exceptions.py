"""
Custom exceptions for SOV Watcher.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the application. All exceptions inherit from the base
SOVWatcherError for consistent catching.

Exception Hierarchy:
    SOVWatcherError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    ├── ExtractionError
    │   └── EntityBackendError
    ├── AliasRegistryFrozenError
    └── CalculationError

Usage:
    from sov_watcher.exceptions import ConfigurationError

    try:
        settings = load_settings(path)
    except ConfigFileNotFoundError as e:
        logger.error(f"Settings file not found: {e}")
        sys.exit(1)

Note:
    Pipeline steps never raise these for malformed text; they return empty
    results instead. Only ShareOfVoiceAggregator.calculate() catches
    everything, converting failures into a fallback distribution.
"""


class SOVWatcherError(Exception):
    """
    Base exception for all SOV Watcher errors.

    All custom exceptions in this application should inherit from this class.
    This enables catching all application-specific errors with a single except clause.
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(SOVWatcherError):
    """
    Base class for configuration-related errors.

    Raised when settings or input loading, parsing, or validation fails.
    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Settings or input file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/settings.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Settings or input file is invalid (schema validation failed).

    Should include details about which field(s) failed validation.

    Example:
        raise ConfigValidationError("Field 'brand' cannot be empty")
    """

    pass


# ============================================================================
# Extraction Errors
# ============================================================================


class ExtractionError(SOVWatcherError):
    """
    Base class for entity extraction errors.

    Raised only for setup problems (backend cannot be created), never for
    malformed input text.
    """

    pass


class EntityBackendError(ExtractionError):
    """
    Entity recognition backend could not be initialized.

    Example:
        raise EntityBackendError("spaCy model 'en_core_web_sm' is not installed")
    """

    pass


# ============================================================================
# Alias Registry Errors
# ============================================================================


class AliasRegistryFrozenError(SOVWatcherError):
    """
    Attempted to mutate an alias registry after its configuration phase ended.

    Example:
        raise AliasRegistryFrozenError("Cannot add aliases for 'acme': registry is frozen")
    """

    pass


# ============================================================================
# Calculation Errors
# ============================================================================


class CalculationError(SOVWatcherError):
    """
    Share of Voice calculation received arguments it cannot work with.

    Raised inside the pipeline (e.g. missing brand name) and converted into
    a FALLBACK_ERROR result by the aggregator's top-level handler.

    Example:
        raise CalculationError("Brand name is required for SOV calculation")
    """

    pass
