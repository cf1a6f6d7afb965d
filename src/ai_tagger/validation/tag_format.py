"""
Tag grammar.

A tag is a non-empty run of letters, numbers and hyphens that does not end
in a hyphen. Letters and numbers are Unicode-aware, so ``#机器学习`` and
``#données`` are as valid as ``#data-science``.

Results carry tags in bare form (no leading ``#``). ``format_tag`` produces
the hash-prefixed form for callers that write tags back into documents.
"""

import re
from typing import Any

from ai_tagger.validation.exceptions import TagValidationError

# [^\W_] is "word character minus underscore": Unicode letters and digits
TAG_PATTERN = re.compile(r"(?:[^\W_]|-)+")

# Prefixes some models prepend to each entry (echoing the field name).
# Applied in order, each at most once, case-insensitively.
MODEL_PREFIXES = tuple(
    re.compile(r"^" + re.escape(prefix), re.IGNORECASE)
    for prefix in (
        "tag:",
        "matchedExistingTags-",
        "suggestedTags-",
        "matchedTags-",
        "newTags-",
        "tags-",
    )
)


def is_valid_tag(tag: Any) -> bool:
    """True iff ``tag`` is a string that satisfies the tag grammar (bare form)."""
    if not isinstance(tag, str) or not tag:
        return False
    return TAG_PATTERN.fullmatch(tag) is not None and not tag.endswith("-")


def sanitize_tag(raw: Any) -> str:
    """
    Normalize one model-produced entry to bare form.

    Trims whitespace, strips known model-added prefixes and a leading
    ``#``. Does not validate: the result may still fail ``is_valid_tag``.

    Examples:
        >>> sanitize_tag("  #data-science ")
        'data-science'
        >>> sanitize_tag("newTags-ml")
        'ml'
    """
    tag = str(raw).strip()
    for pattern in MODEL_PREFIXES:
        tag = pattern.sub("", tag, count=1).strip()
    if tag.startswith("#"):
        tag = tag[1:]
    return tag.strip()


def format_tag(raw: Any) -> str:
    """
    Hash-prefixed form of a tag.

    Raises:
        TagValidationError: the sanitized tag fails the grammar
    """
    tag = sanitize_tag(raw)
    if not is_valid_tag(tag):
        raise TagValidationError(
            f"Invalid tag format: {raw!s} (only letters, numbers and hyphens, "
            "not ending in a hyphen)",
            tag=raw,
        )
    return f"#{tag}"
