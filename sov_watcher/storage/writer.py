"""
File writing utilities for SOV Watcher.

This module writes calculation results as JSON artifacts.

Key features:
- UTF-8 encoding
- Pretty-printed JSON (indent=2)
- Parent directories created on demand
- Errors logged and re-raised with actionable messages

Example:
    >>> result = calculate_share_of_voice("HubSpot", ["Salesforce"], answers, "crm")
    >>> write_result("./output/hubspot.json", result)
"""

import json
import logging
from pathlib import Path

from ..sov.models import ShareOfVoiceResult

logger = logging.getLogger(__name__)


def write_json(filepath: str | Path, data: dict | list) -> None:
    """
    Write data to JSON file with UTF-8 encoding.

    Args:
        filepath: Full path to JSON file to write
        data: Dictionary or list to serialize

    Raises:
        OSError: If file cannot be written (permissions, disk full)
        TypeError: If data is not JSON-serializable
    """
    path = Path(filepath)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        logger.debug(f"Wrote JSON file: {path}")
    except TypeError as e:
        logger.error(f"Cannot serialize data to JSON: {e}", exc_info=True)
        raise TypeError(
            f"Cannot write JSON to '{path}': Data is not JSON-serializable. {e}"
        ) from e
    except OSError as e:
        logger.error(f"Failed to write JSON file: {path}", exc_info=True)
        raise OSError(
            f"Cannot write JSON file '{path}': {e}. Check disk space and permissions."
        ) from e


def write_result(
    filepath: str | Path,
    result: ShareOfVoiceResult,
    include_mentions: bool = True,
) -> None:
    """
    Write a ShareOfVoiceResult as JSON.

    Args:
        filepath: Destination path
        result: Calculation result
        include_mentions: Include the kept mention list
    """
    write_json(filepath, result.to_dict(include_mentions=include_mentions))
    logger.info(f"Wrote Share of Voice result: {filepath}")
