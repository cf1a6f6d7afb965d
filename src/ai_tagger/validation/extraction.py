"""
Payload extraction from free-form model output.

Models are asked for a bare JSON object but regularly wrap it in markdown
fences, surround it with prose, break strings across lines or skip JSON
altogether. The fallback chain below recovers a dict from all of these:

1. ``fenced``: JSON object inside a ```json fenced block
2. ``brace``: outermost ``{...}`` span in the raw text
3. ``fenced_flattened`` / ``brace_flattened``: 1-2 again with newlines
   replaced by spaces
4. ``scrape``: hashtags and quoted short tokens, synthesized into
   ``{"newTags": [...]}``

First success wins. When nothing survives, NoValidTagsFoundError.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ai_tagger.monitoring.metrics import extraction_strategy_total
from ai_tagger.validation.exceptions import NoValidTagsFoundError
from ai_tagger.validation.tag_format import is_valid_tag

logger = structlog.get_logger(__name__)

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
BRACE_SPAN_RE = re.compile(r"\{[\s\S]*\}")

MAX_SCRAPED_TAG_LENGTH = 50
HASHTAG_RE = re.compile(r"#((?:[^\W_]|-)+)")
QUOTED_TOKEN_RE = re.compile(r"[\"']((?:[^\W_]|-){1,%d})[\"']" % MAX_SCRAPED_TAG_LENGTH)

# Field names of the requested JSON object; a truncated object still quotes them
RESPONSE_FIELD_NAMES = frozenset({
    "matchedTags",
    "newTags",
    "matchedExistingTags",
    "suggestedTags",
    "tags",
})


@dataclass(frozen=True)
class ExtractedPayload:
    """Structured data recovered from a response and the strategy that found it."""

    data: dict[str, Any]
    strategy: str

    @property
    def scraped(self) -> bool:
        return self.strategy == "scrape"


def _loads_object(text: str) -> Optional[dict]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _from_fenced(text: str) -> Optional[dict]:
    for match in FENCED_JSON_RE.finditer(text):
        parsed = _loads_object(match.group(1))
        if parsed is not None:
            return parsed
    return None


def _from_brace(text: str) -> Optional[dict]:
    match = BRACE_SPAN_RE.search(text)
    if match is None:
        return None

    parsed = _loads_object(match.group(0))
    if parsed is not None:
        return parsed

    # Greedy span swallowed trailing prose with braces; decode just the first object
    try:
        parsed, _ = json.JSONDecoder().raw_decode(text, match.start())
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def scrape_tags(text: str) -> list[str]:
    """
    Collect hashtag-like and quoted short tokens that satisfy the tag grammar.

    Hashtags come first, then quoted tokens, each in order of appearance,
    without duplicates. Response field names are never collected.
    """
    candidates = [m.group(1) for m in HASHTAG_RE.finditer(text)]
    candidates += [m.group(1) for m in QUOTED_TOKEN_RE.finditer(text)]

    seen: set[str] = set()
    tags: list[str] = []
    for candidate in candidates:
        if candidate in RESPONSE_FIELD_NAMES:
            continue
        if len(candidate) > MAX_SCRAPED_TAG_LENGTH or not is_valid_tag(candidate):
            continue
        if candidate not in seen:
            seen.add(candidate)
            tags.append(candidate)
    return tags


def extract_payload(text: str) -> ExtractedPayload:
    """
    Recover a JSON object from model output.

    Args:
        text: Message content returned by the model

    Returns:
        ExtractedPayload with the parsed dict and the winning strategy

    Raises:
        NoValidTagsFoundError: no strategy produced a usable payload
    """
    text = text or ""
    flattened = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")

    strategies = (
        ("fenced", _from_fenced, text),
        ("brace", _from_brace, text),
        ("fenced_flattened", _from_fenced, flattened),
        ("brace_flattened", _from_brace, flattened),
    )
    for name, strategy, source in strategies:
        data = strategy(source)
        if data is not None:
            extraction_strategy_total.labels(strategy=name).inc()
            logger.debug("Extracted payload", strategy=name, keys=sorted(data))
            return ExtractedPayload(data=data, strategy=name)

    tags = scrape_tags(text)
    if tags:
        extraction_strategy_total.labels(strategy="scrape").inc()
        logger.info("Fell back to tag scraping", tag_count=len(tags))
        return ExtractedPayload(data={"newTags": tags}, strategy="scrape")

    logger.warning("No structured data or tags found in response", content_chars=len(text))
    raise NoValidTagsFoundError(
        "No valid tags found in model response",
        content=text,
    )
