"""Tag parsing and normalization.

Tags come from two places: the structured tag list the host extracts from a
document, and the ``ai-tags`` frontmatter field written by external tooling.
The latter is loosely formatted (a YAML list, a JSON string, or something
that only looks like one) so parsing degrades instead of failing.
"""

import json
import logging
import re
from typing import Any

from vaultgraph.errors import MalformedTagFieldError
from vaultgraph.models.graph import TAG_MARKER

logger = logging.getLogger(__name__)

# Anything inside matching-ish quotes, e.g. ["docker", 'k8s'
QUOTED_PATTERN = re.compile(r"[\"']([^\"']+)[\"']")


def normalize_tag(tag: Any) -> str | None:
    """Trim a tag and ensure a single leading '#'. Empty tags yield None."""
    if tag is None:
        return None
    text = str(tag).strip()
    if not text:
        return None
    if not text.startswith(TAG_MARKER):
        text = TAG_MARKER + text
    if text == TAG_MARKER:
        return None
    return text


def parse_ai_tags_strict(value: Any) -> list[str]:
    """Parse the AI-tags field, raising MalformedTagFieldError on bad input.

    Accepts a list (items stringified) or a string holding a JSON array.
    ``None`` means the field is absent and yields an empty list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise MalformedTagFieldError(f"AI tags are not valid JSON: {e}") from e
        if not isinstance(parsed, list):
            raise MalformedTagFieldError(
                f"AI tags must be a JSON array, got {type(parsed).__name__}"
            )
        return [str(item) for item in parsed if item is not None]
    raise MalformedTagFieldError(f"Unsupported AI tags type: {type(value).__name__}")


def parse_ai_tags(value: Any) -> list[str]:
    """Parse the AI-tags field, never raising.

    Strings that are not a JSON array fall back to collecting every quoted
    substring. Values of any other type produce no tags.
    """
    try:
        return parse_ai_tags_strict(value)
    except MalformedTagFieldError as e:
        if isinstance(value, str):
            found = QUOTED_PATTERN.findall(value)
            logger.debug(f"Falling back to quoted-string tag parsing ({e}): {len(found)} tags")
            return found
        logger.debug(f"Ignoring AI tags field: {e}")
        return []


def collect_tags(structured_tags: list[str], ai_tags_value: Any) -> list[str]:
    """Normalized, de-duplicated tags of one document in first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in [*structured_tags, *parse_ai_tags(ai_tags_value)]:
        tag = normalize_tag(raw)
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result
