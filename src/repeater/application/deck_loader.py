"""Walks deck paths, extracts their cards and assigns identities."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from repeater.application.extractor import extract
from repeater.application.hasher import identity
from repeater.application.utils.fs import iter_markdown_files
from repeater.domain.exceptions import CardParseError
from repeater.domain.models import CardIdentity, ParseIssue, RawCard, SourceLocation

logger = logging.getLogger(__name__)


@dataclass
class DeckScan:
    """Result of scanning a set of deck paths."""

    cards: list[tuple[CardIdentity, RawCard]] = field(default_factory=list)
    issues: list[ParseIssue] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)


class DeckLoader:
    def __init__(self, paths: Iterable[Path | str]):
        self.paths = [Path(p) for p in paths]
        self.logger = logging.getLogger(__name__)

    def scan(self) -> DeckScan:
        """
        Extract and identify every card under the configured paths.

        Missing paths and unreadable files are reported in the result's
        issues and skipped; the remaining files are still processed.
        """
        result = DeckScan()

        for root in self.paths:
            if not root.exists():
                self._report(result, ParseIssue(SourceLocation(root, 0, 0), "path does not exist"))
                continue

            for md_file in iter_markdown_files(root):
                try:
                    text = md_file.read_text(encoding="utf-8", errors="strict")
                except (OSError, UnicodeDecodeError) as e:
                    self._report(
                        result, ParseIssue(SourceLocation(md_file, 0, 0), f"read_error: {e}")
                    )
                    continue

                result.files.append(md_file)
                found = self.identify(extract(text, md_file, result.issues), result)
                self.logger.debug(f"[deck] {md_file.name}: {found} cards")

        return result

    def identify(self, cards: Iterable[RawCard], result: DeckScan) -> int:
        found = 0
        for card in cards:
            try:
                result.cards.append((identity(card), card))
                found += 1
            except CardParseError as e:
                self._report(result, ParseIssue(card.source, str(e)))
        return found

    def _report(self, result: DeckScan, issue: ParseIssue) -> None:
        self.logger.warning(f"[deck] {issue}")
        result.issues.append(issue)


def load_cards(paths: Iterable[Path | str]) -> DeckScan:
    return DeckLoader(paths).scan()
