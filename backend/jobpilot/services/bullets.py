"""
Bullet handling shared by resume ingestion and tailoring.

A work experience description stores one bullet per line, each line prefixed
with ``BULLET_MARKER``. The number of non-empty lines is the experience's
bullet count, which tailoring must preserve.
"""
import logging
import re
from typing import Any, List

logger = logging.getLogger(__name__)

BULLET_MARKER = "•"

LINE_BREAK_RE = re.compile(r"\r?\n+")
# Newlines, bullet glyphs, or a dash followed by whitespace
DESCRIPTION_SPLIT_RE = re.compile(r"\r?\n|•|-\s+")
DESCRIPTION_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
BULLET_SENTENCE_RE = re.compile(r"(?<=[.;!?])\s+")
LEADING_MARKER_RE = re.compile(r"^\s*[-•*▪◦‣]+\s*")


def _non_empty(parts) -> List[str]:
    return [p.strip() for p in parts if p and p.strip()]


def description_lines(description: str) -> List[str]:
    """Non-empty lines of a description, untouched apart from trimming."""
    return _non_empty(LINE_BREAK_RE.split(description or ""))


def count_bullets(description: str) -> int:
    return len(description_lines(description))


def target_bullet_count(description: str) -> int:
    """Bullet count a tailored experience must have; never below 1."""
    return max(count_bullets(description), 1)


def strip_bullet_marker(line: str) -> str:
    return LEADING_MARKER_RE.sub("", line).strip()


def normalize_description(raw: Any) -> str:
    """
    Canonicalize an extracted description into marker-prefixed lines.

    Multiple lines (or bullet-glyph / dash separated fragments) become one
    bullet each. A single line holding several sentences is split into
    sentence bullets. A single bullet is returned unprefixed. A list of
    lines is treated like the same lines joined by newlines.
    """
    if raw is None or isinstance(raw, dict):
        return ""
    if isinstance(raw, list):
        raw = "\n".join(str(item) for item in raw if isinstance(item, (str, int, float)) and not isinstance(item, bool))
    text = str(raw).strip()
    if not text:
        return ""

    bullets = _non_empty(DESCRIPTION_SPLIT_RE.split(text))
    if len(bullets) == 1:
        bullets = _non_empty(DESCRIPTION_SENTENCE_RE.split(bullets[0]))

    if not bullets:
        return text
    if len(bullets) == 1:
        return bullets[0]
    return "\n".join(f"{BULLET_MARKER} {bullet}" for bullet in bullets)


def normalize_bullets(value: Any) -> List[str]:
    """
    Flatten model-produced bullets into clean strings.

    Accepts a list of strings or one string. Embedded line breaks split
    further, leading markers are stripped and empties dropped.
    """
    if isinstance(value, list):
        candidates = value
    elif isinstance(value, str):
        candidates = [value]
    else:
        return []

    cleaned = []
    for item in candidates:
        if item is None or isinstance(item, (dict, list)):
            continue
        for line in LINE_BREAK_RE.split(str(item)):
            line = strip_bullet_marker(line)
            if line:
                cleaned.append(line)
    return cleaned


def split_bullet_sentences(bullet: str) -> List[str]:
    return _non_empty(BULLET_SENTENCE_RE.split(bullet))


def reconcile_bullet_count(bullets: List[str], target: int) -> List[str]:
    """
    Force ``bullets`` to exactly ``target`` entries.

    A lone bullet is first split on sentence punctuation when that yields
    enough sentences; otherwise short lists repeat their last bullet and
    long lists keep their first ``target`` entries.
    """
    bullets = list(bullets)
    if target <= 0 or len(bullets) == target:
        return bullets

    if len(bullets) == 1 and target > 1:
        sentences = split_bullet_sentences(bullets[0])
        if len(sentences) >= target:
            logger.info(f"Split single bullet into {target} sentences")
            return sentences[:target]

    if len(bullets) < target:
        last = bullets[-1] if bullets else ""
        logger.info(f"Padding {len(bullets)} bullets to {target}")
        return bullets + [last] * (target - len(bullets))

    logger.info(f"Truncating {len(bullets)} bullets to {target}")
    return bullets[:target]
