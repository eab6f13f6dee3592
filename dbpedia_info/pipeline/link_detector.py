"""
Wikipedia reference detection and hint generation.

For every annotated block the innermost RDFa node is inspected. When it
points at an English Wikipedia article the article name becomes the hinted
term and the visible text of the block becomes the hinted span.
"""
import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import unquote_to_bytes, urlsplit

from ..common.config import PLUGIN_ID, settings
from ..common.errors import TermDecodeError
from ..common.schemas import AnnotatedBlock, Card, CardInfo, CardOptions, Hint
from .hints_registry import HintsRegistry

logger = logging.getLogger(__name__)

_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_term(segment: str) -> str:
    """Percent-decode a path segment, rejecting malformed escapes."""
    if _BAD_PERCENT_RE.search(segment):
        raise TermDecodeError(segment, "malformed percent escape")
    try:
        return unquote_to_bytes(segment).decode("utf-8")
    except UnicodeDecodeError as e:
        raise TermDecodeError(segment, f"invalid UTF-8 ({e.reason})") from e


def normalize_location(location: Sequence[int], reference: Sequence[int]) -> Tuple[int, int]:
    """Map a location inside the block back into document offsets."""
    return (location[0] + reference[0], location[1] + reference[0])


class WikipediaLinkDetector:
    """Detect blocks referencing Wikipedia articles and build hints for them."""

    def __init__(
        self,
        prefix: Optional[str] = None,
        trim_whitespace_in_span: Optional[bool] = None,
        see_also_predicates: Optional[Iterable[str]] = None,
    ):
        self.prefix = prefix or settings.WIKIPEDIA_PREFIX
        self.trim_whitespace_in_span = (
            settings.TRIM_WHITESPACE_IN_SPAN if trim_whitespace_in_span is None else trim_whitespace_in_span
        )
        predicates = settings.SEE_ALSO_PREDICATES if see_also_predicates is None else see_also_predicates
        self.see_also_predicates = frozenset(predicates)

    def detect_relevant_context(self, block: AnnotatedBlock) -> Optional[str]:
        """
        Return the Wikipedia URI the block refers to, or None.

        Args:
            block: Annotated block

        Returns:
            Reference URI of the innermost annotation when relevant
        """
        node = block.last_node
        if node is None:
            return None
        uri = node.reference
        if not uri or not uri.startswith(self.prefix):
            return None
        if self.see_also_predicates and node.predicate not in self.see_also_predicates:
            return None
        return uri

    def extract_term(self, uri: str) -> Optional[str]:
        """Decoded article name of a Wikipedia URI; None when the path has no name."""
        path = urlsplit(uri).path
        segment = path.split("/")[-1]
        if not segment:
            return None
        return decode_term(segment)

    def hint_location(self, block: AnnotatedBlock) -> Tuple[int, int]:
        if not self.trim_whitespace_in_span:
            return (block.start, block.end)
        trimmed_len = len(block.text.rstrip())
        leading = trimmed_len - len(block.text.strip())
        return normalize_location((leading, trimmed_len), (block.start, block.end))

    def generate_hints_for_context(self, block: AnnotatedBlock) -> List[Hint]:
        uri = self.detect_relevant_context(block)
        if uri is None:
            return []
        try:
            term = self.extract_term(uri)
        except TermDecodeError as e:
            logger.warning("skipping block at %d: %s", block.start, e)
            return []
        if not term:
            return []
        return [Hint(term=term, location=self.hint_location(block))]

    def detect_and_build_hints(self, blocks: Iterable[AnnotatedBlock]) -> List[Hint]:
        hints: List[Hint] = []
        for block in blocks:
            hints.extend(self.generate_hints_for_context(block))
        return hints


def generate_card(hint: Hint) -> Card:
    """Card for the hints registry given a hint."""
    return Card(
        card=PLUGIN_ID,
        info=CardInfo(term=hint.term),
        location=hint.location,
        options=CardOptions(no_highlight=True),
    )


class DbpediaInfoPlugin:
    """Entry point called by the editor for every batch of changed contexts."""

    def __init__(self, detector: Optional[WikipediaLinkDetector] = None):
        self.detector = detector or WikipediaLinkDetector()

    def execute(
        self,
        hr_id: str,
        contexts: Sequence[AnnotatedBlock],
        hints_registry: HintsRegistry,
        editor: object = None,
    ) -> List[Card]:
        """
        Refresh the hints of this plugin for the given contexts.

        Stale hints are removed for every context first; the new cards are
        added afterwards in a single batch.

        Args:
            hr_id: Unique identifier of the event in the hints registry
            contexts: Annotated blocks the event applies on
            hints_registry: Registry of hints in the editor
            editor: Editor instance, unused

        Returns:
            Cards added to the registry
        """
        if len(contexts) == 0:
            return []

        hints: List[Hint] = []
        for block in contexts:
            hints_registry.remove_hints_in_region(block.region, hr_id, PLUGIN_ID)
            hints.extend(self.detector.generate_hints_for_context(block))

        cards = [generate_card(hint) for hint in hints]
        if cards:
            hints_registry.add_hints(hr_id, PLUGIN_ID, cards)
        logger.debug("%s: %d contexts, %d cards", hr_id, len(contexts), len(cards))
        return cards


def detect_and_build_hints(blocks: Iterable[AnnotatedBlock]) -> List[Hint]:
    """Hints for all blocks using the configured detector."""
    return WikipediaLinkDetector().detect_and_build_hints(blocks)


__all__ = [
    "DbpediaInfoPlugin",
    "WikipediaLinkDetector",
    "decode_term",
    "detect_and_build_hints",
    "generate_card",
    "normalize_location",
]
