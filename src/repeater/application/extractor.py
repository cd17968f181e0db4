"""
Card extraction from Markdown decks.

Decks are ordinary prose documents with cards embedded as tagged blocks:

    Q: question text      (Basic: question half)
    A: answer text        (Basic: answer half)
    C: text with [spans]  (Cloze: each bracketed span is a deletion)

A block runs until a horizontal rule, the next Q:/C: tag, or end of input.
Malformed blocks are skipped and reported; they never stop the parse.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from repeater.application.utils.text import join_block_lines, split_frontmatter
from repeater.domain.constants import FRONTMATTER_SKIP_KEY
from repeater.domain.models import (
    BasicContent,
    CardKind,
    ClozeContent,
    ClozeSpan,
    ParseIssue,
    RawCard,
    SourceLocation,
)

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"^\s*([QAC]):(.*)$")
HORIZONTAL_RULE_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
FENCE_RE = re.compile(r"^\s*(```|~~~)")


def find_cloze_spans(text: str) -> tuple[ClozeSpan, ...]:
    """
    Find bracketed deletions in cloze text.

    Spans do not nest: a "[" inside an open span is content. An unclosed
    "[" is ignored and an empty "[]" is not a deletion.
    """
    spans: list[ClozeSpan] = []
    start: int | None = None

    for i, ch in enumerate(text):
        if ch == "[" and start is None:
            start = i
        elif ch == "]" and start is not None:
            if text[start + 1 : i].strip():
                spans.append(ClozeSpan(start, i + 1))
            start = None

    return tuple(spans)


@dataclass
class _Block:
    kind: CardKind
    start_line: int
    end_line: int
    front: list[str] = field(default_factory=list)
    back: list[str] | None = None

    def append(self, line: str, lineno: int) -> None:
        target = self.back if self.back is not None else self.front
        target.append(line)
        if line.strip():
            self.end_line = lineno


def _build_card(block: _Block, path: Path) -> RawCard | ParseIssue:
    location = SourceLocation(path, block.start_line, block.end_line)

    match block.kind:
        case CardKind.BASIC:
            front = join_block_lines(block.front)
            if not front:
                return ParseIssue(location, "question is empty")
            if block.back is None:
                return ParseIssue(location, "question has no 'A:' answer")
            back = join_block_lines(block.back)
            if not back:
                return ParseIssue(location, "answer is empty")
            return RawCard(BasicContent(front=front, back=back), location)
        case CardKind.CLOZE:
            text = join_block_lines(block.front)
            if not text:
                return ParseIssue(location, "cloze is empty")
            spans = find_cloze_spans(text)
            if not spans:
                return ParseIssue(location, "cloze has no [bracketed] deletion")
            return RawCard(ClozeContent(text=text, spans=spans), location)


def extract(
    text: str,
    source_path: Path | str,
    issues: list[ParseIssue] | None = None,
) -> Iterator[RawCard]:
    """
    Lazily parse the cards in one deck.

    Args:
        text: Full contents of the deck.
        source_path: Path recorded in each card's source location.
        issues: Optional list collecting malformed blocks. Each issue is
            also logged at WARNING.

    Yields:
        RawCard for every well-formed block, in file order. Calling again
        on the same text restarts the parse from the top.
    """
    path = Path(source_path)

    def report(issue: ParseIssue) -> None:
        logger.warning(f"[parse] {issue}")
        if issues is not None:
            issues.append(issue)

    meta, body_start, fm_error = split_frontmatter(text)
    if fm_error:
        report(ParseIssue(SourceLocation(path, 1, body_start), fm_error))
    if meta.get(FRONTMATTER_SKIP_KEY) is False:
        logger.info(f"[parse] Skipping {path}: frontmatter sets {FRONTMATTER_SKIP_KEY}: false")
        return

    lines = text.lstrip("\ufeff").splitlines()
    block: _Block | None = None
    in_fence = False

    def finish() -> Iterator[RawCard]:
        nonlocal block
        if block is None:
            return
        result = _build_card(block, path)
        block = None
        if isinstance(result, ParseIssue):
            report(result)
        else:
            yield result

    for lineno, line in enumerate(lines[body_start:], start=body_start + 1):
        if FENCE_RE.match(line):
            in_fence = not in_fence
            if block is not None:
                block.append(line, lineno)
            continue

        if in_fence:
            if block is not None:
                block.append(line, lineno)
            continue

        if HORIZONTAL_RULE_RE.match(line):
            yield from finish()
            continue

        m = TAG_RE.match(line)
        if m:
            tag, rest = m.group(1), m.group(2).strip()
            if tag == "A":
                if block is not None and block.kind is CardKind.BASIC and block.back is None:
                    block.back = []
                    block.append(rest, lineno)
                    block.end_line = lineno
                else:
                    if block is not None and block.kind is CardKind.BASIC:
                        reason = "second 'A:' within one card"
                    elif block is not None:
                        reason = "'A:' inside a cloze block"
                    else:
                        reason = "answer has no 'Q:' question"
                    yield from finish()
                    report(ParseIssue(SourceLocation(path, lineno, lineno), reason))
                continue

            yield from finish()
            kind = CardKind.BASIC if tag == "Q" else CardKind.CLOZE
            block = _Block(kind=kind, start_line=lineno, end_line=lineno)
            block.append(rest, lineno)
            continue

        if block is not None:
            block.append(line, lineno)

    yield from finish()

