"""
Text cleaning, segmentation and span weighting for SOV Watcher.

Generated answers arrive as Markdown, HTML fragments or plain prose. This
module turns them into clean text, splits them into sentence and paragraph
segments, and assigns a heuristic importance weight to a text span.

Key features:
- Markup stripping via BeautifulSoup with a regex-only fallback
- URL and email removal, whitespace collapsing
- Lazy, restartable sentence/paragraph views (iterate as often as needed)
- Title/heading detection and multiplicative span weighting

Example:
    >>> normalizer = TextNormalizer()
    >>> normalizer.clean("<p>Try <b>HubSpot</b> at https://hubspot.com</p>")
    'Try HubSpot at'
    >>> list(normalizer.split_sentences("HubSpot is great. Salesforce is big too."))
    ['HubSpot is great.', 'Salesforce is big too.']
    >>> normalizer.weight_of("Welcome")
    3.0
"""

import logging
import re
import warnings
from collections.abc import Callable, Iterator

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from ..config.constants import (
    IMPORTANCE_KEYWORDS,
    IMPORTANT_CONTEXT_KEYWORDS,
    NAVIGATION_WORDS,
)

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]*>")
URL_PATTERN = re.compile(r"https?://[^\s]+")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
WHITESPACE_PATTERN = re.compile(r"\s+")
PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")

LINE_BREAK_PATTERN = re.compile(r"\n+")
PARAGRAPH_BREAK_PATTERN = re.compile(r"\n\s*\n|</p>\s*<p[^>]*>", re.IGNORECASE)
# Sentence end: terminal punctuation followed by whitespace and a plausible
# sentence start. "Warmly.io" and "3.5" never split.
SENTENCE_BREAK_PATTERN = re.compile(r"(?<=[.!?])\s+(?=[\"'(\[*A-Z0-9])")
LIST_MARKER_PATTERN = re.compile(r"^\s*(?:[-*•]|\d{1,2}[.)]|[a-z][.)])\s+")
TITLE_SHAPE_PATTERN = re.compile(r"^[A-Z][^.!?]*$")
DIGIT_PATTERN = re.compile(r"\d")

MIN_SENTENCE_LENGTH = 10
MIN_PARAGRAPH_LENGTH = 20


def keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern:
    """Compile a case-insensitive whole-word alternation of keywords."""
    alternation = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"(?<![\w-])(?:{alternation})(?![\w-])", re.IGNORECASE)


NAVIGATION_PATTERN = keyword_pattern(NAVIGATION_WORDS)
IMPORTANCE_PATTERN = keyword_pattern(IMPORTANCE_KEYWORDS)
IMPORTANT_CONTEXT_PATTERN = keyword_pattern(IMPORTANT_CONTEXT_KEYWORDS)


class SegmentView:
    """
    Lazy, finite, restartable view over text segments.

    Segments are produced on demand by a generator factory, so iterating the
    view twice walks the text twice and yields the same items both times.

    Example:
        >>> view = TextNormalizer().split_sentences("One sentence here. Another one here.")
        >>> list(view) == list(view)
        True
    """

    def __init__(self, factory: Callable[[], Iterator[str]]):
        self._factory = factory

    def __iter__(self) -> Iterator[str]:
        return self._factory()

    def __repr__(self) -> str:
        return f"SegmentView({list(self)!r})"


class TextNormalizer:
    """
    Cleans, segments and weighs answer text.

    Stateless; one instance can be shared by every calculation.
    """

    def clean(self, text: str) -> str:
        """
        Remove markup, URLs and emails, then collapse whitespace.

        Never raises. If the markup parser fails for any reason the simpler
        regex-only cleaner is used, which honors the same contract.

        Args:
            text: Raw text (HTML, Markdown or plain)

        Returns:
            Cleaned single-line text; "" for empty or non-string input
        """
        if not text or not isinstance(text, str):
            return ""

        try:
            return self._clean_with_parser(text)
        except Exception as e:
            logger.debug(f"Markup parser failed, using regex cleaner: {e}")
            return self._clean_with_regex(text)

    def _clean_with_parser(self, text: str) -> str:
        if "<" in text and ">" in text:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
                text = BeautifulSoup(text, "html.parser").get_text(" ")
        return self._strip_noise(text)

    def _clean_with_regex(self, text: str) -> str:
        return self._strip_noise(TAG_PATTERN.sub(" ", text))

    @staticmethod
    def _strip_noise(text: str) -> str:
        text = URL_PATTERN.sub(" ", text)
        text = EMAIL_PATTERN.sub(" ", text)
        return WHITESPACE_PATTERN.sub(" ", text).strip()

    def normalize(self, text: str) -> str:
        """
        Lower-case text, turn punctuation into spaces, collapse whitespace.

        Example:
            >>> TextNormalizer().normalize("Zoom.info, Inc!")
            'zoom info inc'
        """
        if not text:
            return ""
        text = PUNCTUATION_PATTERN.sub(" ", text.lower())
        return WHITESPACE_PATTERN.sub(" ", text).strip()

    def split_sentences(self, text: str) -> SegmentView:
        """
        Split text into cleaned sentence-like segments longer than 10 chars.

        Lines are split first, then sentences within a line. A leading list
        marker ("1.", "-", "a)") stays attached to the first sentence of its
        line so list items remain recognizable.

        Args:
            text: Raw text

        Returns:
            Restartable lazy view of sentences
        """

        def generate() -> Iterator[str]:
            if not text or not isinstance(text, str):
                return
            for line in LINE_BREAK_PATTERN.split(text):
                marker_match = LIST_MARKER_PATTERN.match(line)
                marker = marker_match.group(0).strip() + " " if marker_match else ""
                body = line[marker_match.end():] if marker_match else line
                for index, piece in enumerate(SENTENCE_BREAK_PATTERN.split(body)):
                    sentence = self.clean((marker if index == 0 else "") + piece)
                    if len(sentence) > MIN_SENTENCE_LENGTH:
                        yield sentence

        return SegmentView(generate)

    def split_paragraphs(self, text: str) -> SegmentView:
        """
        Split text on blank lines (or </p><p>) into cleaned paragraphs longer than 20 chars.

        Args:
            text: Raw text

        Returns:
            Restartable lazy view of paragraphs
        """

        def generate() -> Iterator[str]:
            if not text or not isinstance(text, str):
                return
            for piece in PARAGRAPH_BREAK_PATTERN.split(text):
                paragraph = self.clean(piece)
                if len(paragraph) > MIN_PARAGRAPH_LENGTH:
                    yield paragraph

        return SegmentView(generate)

    def is_title_or_heading(self, text: str) -> bool:
        """
        Loose title/heading test used for span weighting.

        Any one signal is enough: shorter than 100 chars, contains a
        navigational word, starts capitalized without terminal punctuation,
        or has at most 8 words while being longer than 10 chars.
        """
        if not text:
            return False

        return any(
            (
                len(text) < 100,
                NAVIGATION_PATTERN.search(text) is not None,
                TITLE_SHAPE_PATTERN.match(text) is not None,
                len(text.split()) <= 8 and len(text) > 10,
            )
        )

    def is_important_context(self, text: str) -> bool:
        """True if text contains a ranking/comparison/review keyword."""
        if not text:
            return False
        return IMPORTANT_CONTEXT_PATTERN.search(text) is not None

    def weight_of(self, text: str) -> float:
        """
        Heuristic importance weight of a text span (>= 1.0).

        Starts at 1.0 and multiplies:
        - x3.0 for titles/headings
        - x1.5 when 20 < length < 200 (both bounds exclusive)
        - x1.2 when the text contains a digit
        - x1.3 when it contains best/top/leading/popular/recommended/trusted/reliable

        Example:
            >>> TextNormalizer().weight_of("Welcome")
            3.0
        """
        if not text:
            return 1.0

        weight = 1.0

        if self.is_title_or_heading(text):
            weight *= 3.0

        if 20 < len(text) < 200:
            weight *= 1.5

        if DIGIT_PATTERN.search(text):
            weight *= 1.2

        if IMPORTANCE_PATTERN.search(text):
            weight *= 1.3

        return weight
