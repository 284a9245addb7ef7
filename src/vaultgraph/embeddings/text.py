"""Markdown to embedding-input text.

Only the headings and the first words of the body are embedded: they carry
most of a note's topic and keep requests small.
"""

import math
import re

DEFAULT_WORD_LIMIT = 100
DEFAULT_MAX_TOKENS = 8191
CHARS_PER_TOKEN = 4

FRONTMATTER_PATTERN = re.compile(r"\A---\n.*?\n---[ \t]*\n?", re.DOTALL)
HEADING_PATTERN = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)
CODE_BLOCK_PATTERN = re.compile(r"```.*?```", re.DOTALL)
MARKDOWN_LINK_PATTERN = re.compile(r"\[(.*?)\]\(.*?\)")
BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
ITALIC_PATTERN = re.compile(r"\*(.*?)\*")
INLINE_CODE_PATTERN = re.compile(r"`(.*?)`")
EXTRA_NEWLINES_PATTERN = re.compile(r"\n{3,}")


def strip_frontmatter(content: str) -> str:
    """Remove a leading YAML frontmatter block."""
    return FRONTMATTER_PATTERN.sub("", content, count=1)


def extract_headings_and_first_words(content: str, word_limit: int = DEFAULT_WORD_LIMIT) -> str:
    """Headings joined with ' | ', a blank line, then the first body words.

    Code blocks and markdown links are dropped from the body before counting.
    """
    body = strip_frontmatter(content)
    headings = [h.strip() for h in HEADING_PATTERN.findall(body)]

    body = HEADING_PATTERN.sub("", body)
    body = CODE_BLOCK_PATTERN.sub("", body)
    body = MARKDOWN_LINK_PATTERN.sub("", body)
    words = body.split()[:word_limit]
    first_words = " ".join(words)

    heading_text = " | ".join(headings)
    combined = f"{heading_text}\n\n{first_words}" if heading_text else first_words
    return combined.strip()


def clean_text_for_embedding(content: str, word_limit: int = DEFAULT_WORD_LIMIT) -> str:
    """Extract headings and first words, then drop inline markdown."""
    text = extract_headings_and_first_words(content, word_limit)
    text = BOLD_PATTERN.sub(r"\1", text)
    text = ITALIC_PATTERN.sub(r"\1", text)
    text = MARKDOWN_LINK_PATTERN.sub(r"\1", text)
    text = INLINE_CODE_PATTERN.sub(r"\1", text)
    text = EXTRA_NEWLINES_PATTERN.sub("\n\n", text)
    return text.strip()


def estimate_token_count(text: str) -> int:
    """Rough token count, about four characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def is_within_token_limit(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> bool:
    return estimate_token_count(text) <= max_tokens
