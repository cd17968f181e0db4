from collections.abc import Iterator
from pathlib import Path

from repeater.domain.constants import MARKDOWN_SUFFIX


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == MARKDOWN_SUFFIX


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """
    Yield every Markdown file at or below root, in sorted order.

    A file root is yielded as-is when it is Markdown. Hidden directories
    (.git, .obsidian, .trash, ...) are not descended into.
    """
    if root.is_file():
        if is_markdown(root):
            yield root
        return

    for p in sorted(root.rglob("*")):
        rel_parts = p.relative_to(root).parts
        if any(part.startswith(".") for part in rel_parts[:-1]):
            continue
        if p.is_file() and is_markdown(p):
            yield p
