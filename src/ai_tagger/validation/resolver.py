"""
Response resolver: model output -> AnalysisResult.

Applies the extraction fallback chain, then the per-mode field contract:

- PREDEFINED_TAGS / EXISTING_TAGS: ``matchedTags`` required
- GENERATE_NEW / CUSTOM: ``newTags`` required
- hybrid modes: both required, quota split floor/remainder

Each field is sanitized, sliced to its quota, validated (invalid entries
dropped) and deduplicated. A field that had entries but lost all of them to
validation raises NoValidTagsFoundError; a field the model left empty
simply yields an empty side.
"""

from typing import Any

import structlog

from ai_tagger.models.enums import TaggingMode
from ai_tagger.models.tagging_models import AnalysisResult
from ai_tagger.monitoring.metrics import tags_dropped_total
from ai_tagger.validation.exceptions import MalformedResponseError, NoValidTagsFoundError
from ai_tagger.validation.extraction import extract_payload
from ai_tagger.validation.tag_format import is_valid_tag, sanitize_tag

logger = structlog.get_logger(__name__)

MATCHED_FIELD = "matchedTags"
NEW_FIELD = "newTags"


def split_hybrid_quota(max_tags: int) -> tuple[int, int]:
    """
    Split a hybrid quota into (matched, new).

    The new-tag side receives the remainder: ``split_hybrid_quota(5) == (2, 3)``.
    """
    if max_tags < 0:
        raise ValueError("max_tags must be non-negative")
    matched = max_tags // 2
    return matched, max_tags - matched


def required_fields(mode: TaggingMode) -> tuple[str, ...]:
    """Fields a response must carry for ``mode``."""
    if mode.is_hybrid:
        return (MATCHED_FIELD, NEW_FIELD)
    if mode.is_matching:
        return (MATCHED_FIELD,)
    return (NEW_FIELD,)


class ResponseResolver:
    """
    Turn raw model output into a validated AnalysisResult.

    Stateless; one instance can serve every request.
    """

    def resolve(self, text: str, mode: TaggingMode, max_tags: int) -> AnalysisResult:
        """
        Resolve model output for one call.

        Args:
            text: Message content returned by the model
            mode: Mode the prompt was built for
            max_tags: Quota for this call (split internally for hybrid modes)

        Returns:
            AnalysisResult whose tags all satisfy the tag grammar

        Raises:
            NoValidTagsFoundError: extraction failed or validation emptied the result
            MalformedResponseError: a required field is missing or not a list
        """
        if max_tags < 0:
            raise ValueError("max_tags must be non-negative")

        payload = extract_payload(text)
        fields = required_fields(mode)

        missing = [f for f in fields if f not in payload.data]
        if missing:
            logger.warning(
                "Response missing required fields",
                mode=mode.value,
                missing=missing,
                strategy=payload.strategy,
            )
            if payload.scraped:
                message = f"Response held no JSON object; scraped tags cannot fill {', '.join(missing)}"
            else:
                message = f"Response is missing required field(s): {', '.join(missing)}"
            raise MalformedResponseError(
                message,
                missing_fields=missing,
                content=text,
            )

        not_lists = [f for f in fields if not isinstance(payload.data[f], list)]
        if not_lists:
            raise MalformedResponseError(
                f"Response field(s) must be arrays: {', '.join(not_lists)}",
                missing_fields=not_lists,
                content=text,
            )

        if mode.is_hybrid:
            matched_quota, new_quota = split_hybrid_quota(max_tags)
        elif mode.is_matching:
            matched_quota, new_quota = max_tags, 0
        else:
            matched_quota, new_quota = 0, max_tags

        offered = 0
        matched: list[str] = []
        suggested: list[str] = []

        if MATCHED_FIELD in fields:
            sliced = self._slice(payload.data[MATCHED_FIELD], matched_quota)
            offered += len(sliced)
            matched = self._validate(sliced, MATCHED_FIELD)
        if NEW_FIELD in fields:
            sliced = self._slice(payload.data[NEW_FIELD], new_quota)
            offered += len(sliced)
            suggested = self._validate(sliced, NEW_FIELD)

        if offered and not matched and not suggested:
            raise NoValidTagsFoundError(
                "Every tag in the response failed validation",
                content=text,
                field=",".join(fields),
            )

        result = AnalysisResult(suggested_tags=suggested, matched_existing_tags=matched)
        logger.debug(
            "Resolved response",
            mode=mode.value,
            strategy=payload.strategy,
            matched=len(result.matched_existing_tags),
            suggested=len(result.suggested_tags),
        )
        return result

    @staticmethod
    def _slice(values: list[Any], quota: int) -> list[str]:
        # Drop entries that sanitize to nothing before they consume quota
        cleaned = [sanitize_tag(v) for v in values if v is not None]
        return [v for v in cleaned if v][:quota]

    @staticmethod
    def _validate(tags: list[str], field: str) -> list[str]:
        valid: list[str] = []
        for tag in tags:
            if not is_valid_tag(tag):
                tags_dropped_total.labels(field=field).inc()
                logger.debug("Dropped invalid tag", tag=tag, field=field)
                continue
            if tag not in valid:
                valid.append(tag)
        return valid
