import re
from typing import Any

import yaml  # type: ignore
import yaml.constructor
import yaml.error

# A Q:/A:/C: line means the --- pair delimits cards, not metadata.
CARD_TAG_RE = re.compile(r"^\s*[QAC]:")

# ---------- Frontmatter helpers ----------


class UniqueKeyLoader(yaml.SafeLoader):
    """Custom YAML loader that forbids duplicate keys."""

    def construct_mapping(self, node, deep=False):
        mapping = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            mapping.add(key)
        return super().construct_mapping(node, deep)


def split_frontmatter(md_text: str) -> tuple[dict[str, Any], int, str | None]:
    """Locate and parse YAML frontmatter at the top of a deck.

    Uses line-by-line parsing instead of regex for reliability.
    Returns (meta, body_start, error): body_start is the number of lines the
    frontmatter occupies (0 when there is none), so body line N of the file
    is line body_start + N. A YAML problem is returned as error with an
    empty meta; the frontmatter lines are still reported as consumed.
    A --- pair enclosing card tags, or YAML that is not a mapping, is
    treated as two horizontal rules and left to the card parser.
    """
    # Handle potential BOM (Byte Order Mark)
    md_text = md_text.lstrip("\ufeff")
    lines = md_text.splitlines()

    if not lines or lines[0].strip() != "---":
        return {}, 0, None

    yaml_end_line = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            yaml_end_line = i
            break

    if yaml_end_line is None:
        # No closing ---: the opening line is a horizontal rule, not frontmatter
        return {}, 0, None

    region = lines[1:yaml_end_line]
    if any(CARD_TAG_RE.match(line) for line in region):
        return {}, 0, None

    raw = "\n".join(region)
    # Fix tabs (common user error)
    if "\t" in raw:
        raw = raw.replace("\t", "  ")

    try:
        meta = yaml.load(raw, Loader=UniqueKeyLoader) or {}
    except yaml.error.YAMLError as e:
        return {}, yaml_end_line + 1, f"invalid frontmatter: {e}"

    if not isinstance(meta, dict):
        # Scalars and lists are prose between two horizontal rules
        return {}, 0, None

    return meta, yaml_end_line + 1, None


def join_block_lines(lines: list[str]) -> str:
    """Join accumulated content lines, dropping blank lines at either end."""
    trimmed = [line.rstrip() for line in lines]
    while trimmed and not trimmed[0].strip():
        trimmed.pop(0)
    while trimmed and not trimmed[-1].strip():
        trimmed.pop()
    return "\n".join(trimmed).strip()
