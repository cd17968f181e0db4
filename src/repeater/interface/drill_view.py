"""Plain-text rendering of cards for the drill loop."""

from repeater.domain.constants import CLOZE_PLACEHOLDER_MIN
from repeater.domain.models import BasicContent, ClozeContent, RawCard


def mask_cloze_text(content: ClozeContent) -> str:
    """Replace every deletion with underscores sized to its hidden text."""
    parts: list[str] = []
    cursor = 0
    for span in content.spans:
        hidden = span.inner(content.text)
        parts.append(content.text[cursor : span.start])
        parts.append("[" + "_" * max(len(hidden), CLOZE_PLACEHOLDER_MIN) + "]")
        cursor = span.end
    parts.append(content.text[cursor:])
    return "".join(parts)


def format_card_text(card: RawCard, show_answer: bool) -> str:
    match card.content:
        case BasicContent(front=front, back=back):
            text = f"Q:\n{front}\n\nA:\n"
            if show_answer:
                text += back
            return text
        case ClozeContent() as cloze:
            body = cloze.text if show_answer else mask_cloze_text(cloze)
            return f"Cloze:\n{body}"


def format_progress(done: int, remaining: int, redo: int) -> str:
    text = f"[{done} reviewed, {remaining} left"
    if redo:
        text += f", {redo} to redo"
    return text + "]"
