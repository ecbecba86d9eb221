"""
Source enrichment: wrap raw answers into Source records.

Accepted answer shapes:
- mappings with a "text" key (or "responseText")
- objects with a `text` attribute (e.g. config.schema.AnswerRecord)
- plain strings

Answers without text are skipped.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..config.constants import PROVENANCE_WEIGHTS
from .models import Provenance, Source

logger = logging.getLogger(__name__)


def _answer_text(answer: Any) -> str | None:
    if isinstance(answer, str):
        return answer
    if isinstance(answer, Mapping):
        return answer.get("text") or answer.get("responseText")
    return getattr(answer, "text", None)


class SourceEnricher:
    """
    Tags answers with provenance and weight.

    Args:
        provenance_weights: Provenance value -> weight (defaults to
                            PROVENANCE_WEIGHTS; missing tags weigh 1.0)
    """

    def __init__(self, provenance_weights: Mapping[str, float] | None = None):
        self.provenance_weights = dict(provenance_weights or PROVENANCE_WEIGHTS)

    def enrich(self, raw_answers: Iterable[Any] | None) -> list[Source]:
        """
        Wrap answers into generated-answer Sources, skipping empty ones.

        Example:
            >>> sources = SourceEnricher().enrich([{"text": "HubSpot"}, "", None])
            >>> [(s.provenance.value, s.text, s.weight) for s in sources]
            [('generated-answer', 'HubSpot', 1.0)]
        """
        provenance = Provenance.GENERATED_ANSWER
        weight = self.provenance_weights.get(provenance.value, 1.0)

        sources = []
        skipped = 0
        for answer in raw_answers or ():
            text = _answer_text(answer)
            if not isinstance(text, str) or not text.strip():
                skipped += 1
                continue
            sources.append(Source(provenance=provenance, text=text, weight=weight))

        if skipped:
            logger.debug(f"Skipped {skipped} answers without text")
        return sources
