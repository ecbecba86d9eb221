"""
CLI entrypoint for SOV Watcher.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, tables, panels, colored text
- Agent-friendly output: Structured JSON for AI automation
- Quiet mode: Tab-separated minimal output for shell scripts

Commands:
    calculate: Compute Share of Voice for an input file of answers
    validate: Validate a settings file without calculating

Exit codes:
    0: Success - Share of Voice measured from the answers
    1: Configuration or input error (invalid YAML, failed validation)
    3: Fallback - no evidence in the answers or calculation failed;
       percentages are a fixed distribution, not a measurement

Examples:
    # Human-friendly output
    sov-watcher calculate --input answers.yaml --config settings.yaml

    # Agent-friendly JSON output (no spinners, no colors)
    sov-watcher calculate --input answers.yaml --format json

    # Write the full result (with mentions) to disk
    sov-watcher calculate --input answers.yaml --output result.json
"""

from pathlib import Path

import typer
from rich.traceback import install as install_rich_traceback

from sov_watcher.config.loader import load_request, load_settings
from sov_watcher.config.schema import AnalysisRequest, PipelineSettings
from sov_watcher.exceptions import (
    ConfigFileNotFoundError,
    ConfigurationError,
    EntityBackendError,
)
from sov_watcher.extractor.brand_matcher import AliasRegistry
from sov_watcher.extractor.entity_extractor import (
    EntityExtractor,
    SpacyEntityBackend,
    create_entity_backend,
)
from sov_watcher.extractor.text_normalizer import TextNormalizer
from sov_watcher.sov.aggregator import ShareOfVoiceAggregator
from sov_watcher.storage.writer import write_result
from sov_watcher.utils.console import (
    error,
    info,
    output_mode,
    print_banner,
    print_final_summary,
    print_share_of_voice_table,
    spinner,
    success,
    warning,
)
from sov_watcher.utils.logging import setup_logging

install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1  # Settings or input validation failed
EXIT_FALLBACK = 3  # Result is a fallback distribution

app = typer.Typer(
    name="sov-watcher",
    help="Measure Share of Voice for your brand in AI-generated answers",
    add_completion=False,
)


def build_registry(settings: PipelineSettings, request: AnalysisRequest) -> AliasRegistry:
    """
    Build the alias registry for one request.

    Order: built-in aliases, settings aliases, request aliases, then domain
    variants of the request domain. The registry is returned unfrozen; the
    aggregator freezes it.
    """
    registry = AliasRegistry.default()
    for brand, aliases in settings.aliases.items():
        registry.add_alias(brand, aliases)
    for brand, aliases in request.aliases.items():
        registry.add_alias(brand, aliases)
    if request.domain:
        registry.add_domain_variants(request.domain, request.brand)
    return registry


def build_aggregator(
    settings: PipelineSettings, request: AnalysisRequest
) -> ShareOfVoiceAggregator:
    """
    Build an aggregator for one request.

    The spaCy backend is loaded eagerly so a missing model surfaces as a
    configuration problem instead of a fallback result.

    Raises:
        EntityBackendError: If the spacy backend cannot be loaded
    """
    normalizer = TextNormalizer()
    backend = create_entity_backend(settings)
    if isinstance(backend, SpacyEntityBackend):
        backend.load()

    return ShareOfVoiceAggregator(
        settings=settings,
        registry=build_registry(settings, request),
        normalizer=normalizer,
        extractor=EntityExtractor(backend, normalizer),
    )


def _fail(message: str, error_type: str) -> None:
    error(message)
    if output_mode.is_agent():
        output_mode.add_json("error_type", error_type)
        output_mode.flush_json()
    raise typer.Exit(EXIT_CONFIG_ERROR)


@app.command()
def calculate(
    input: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to YAML/JSON input (brand, competitors, topic, answers)",
    ),
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML pipeline settings (defaults when omitted)",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the full result (including mentions) to this JSON file",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output (tab-separated values)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Calculate Share of Voice for a brand against its competitors.

    This command will:
    1. Load settings and the input file
    2. Extract, resolve and score brand mentions in every answer
    3. Convert mention scores into percentages per brand
    4. Optionally write the result as JSON

    Exit codes:
      0: Share of Voice measured
      1: Configuration or input error
      3: Fallback distribution (no evidence, or calculation failed)

    Examples:
      sov-watcher calculate --input answers.yaml
      sov-watcher calculate --input answers.yaml --format json
      sov-watcher calculate --input answers.yaml --quiet
    """
    if format not in ("text", "json"):
        output_mode.format = "text"
        _fail(f"Invalid format: {format}. Must be 'text' or 'json'", "invalid_format")

    output_mode.format = format
    output_mode.quiet = quiet
    # JSON logs on stderr would interleave with Rich output in human mode
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    print_banner(_read_version())

    try:
        with spinner("Loading configuration..."):
            settings = load_settings(config)
            request = load_request(input)
            aggregator = build_aggregator(settings, request)
    except ConfigFileNotFoundError as e:
        _fail(str(e), "file_not_found")
    except ConfigurationError as e:
        _fail(str(e), "validation_error")
    except EntityBackendError as e:
        _fail(str(e), "entity_backend_error")

    success(f"Loaded {len(request.answers)} answers for {request.brand}")
    info(f"Competitors: {', '.join(request.competitors) or 'none'}")
    info(f"Entity backend: {settings.entity_backend}")

    with spinner("Calculating Share of Voice..."):
        result = aggregator.calculate(
            request.brand,
            request.competitors,
            [answer.model_dump() for answer in request.answers],
            request.topic,
        )

    print_share_of_voice_table(result)

    output_path = None
    if output is not None:
        try:
            write_result(output, result)
        except OSError as e:
            _fail(str(e), "output_error")
        output_path = str(output)

    if not result.is_measured:
        warning(
            f"No measurement ({result.status.value}); "
            "percentages are a fixed fallback distribution"
        )

    print_final_summary(result, output_path)
    raise typer.Exit(EXIT_SUCCESS if result.is_measured else EXIT_FALLBACK)


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML pipeline settings",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate a settings file without calculating anything.

    Exit codes:
      0: Settings are valid
      1: Settings are invalid

    Examples:
      sov-watcher validate --config settings.yaml
      sov-watcher validate --config settings.yaml --format json
    """
    output_mode.format = format
    output_mode.quiet = False

    try:
        with spinner("Validating settings..."):
            settings = load_settings(config)
    except ConfigFileNotFoundError as e:
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
        _fail(str(e), "file_not_found")
    except ConfigurationError as e:
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
        _fail(f"Validation failed: {e}", "validation_error")

    success("Settings are valid")
    info(f"Entity backend: {settings.entity_backend}")
    info(f"Minimum confidence: {settings.min_confidence}")
    info(f"Topic keyword overrides: {len(settings.topic_keywords)}")
    info(f"Alias overrides: {len(settings.aliases)}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("settings", settings.model_dump())
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    SOV Watcher - Share of Voice for brands in AI-generated answers.

    Use 'sov-watcher COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        Console().print(f"[bold cyan]sov-watcher[/bold cyan] version {_read_version()}")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  calculate  Compute Share of Voice for an input file")
        console.print("  validate   Validate a settings file")


def _read_version() -> str:
    """Read version from package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("sov-watcher")
    except PackageNotFoundError:
        return "0.1.0"


if __name__ == "__main__":
    app()
