"""
Identity hashing for cards.

A card's identity is a BLAKE2b digest of its normalized wording: lowercase
words of letters and digits, with apostrophes joined, stopwords dropped and
all other punctuation ignored except the meaning-bearing marks below.
Reflowing or re-capitalizing a card keeps its identity; changing a word
starts a new one.
"""

import hashlib

from repeater.domain.exceptions import CardParseError
from repeater.domain.models import BasicContent, CardIdentity, CardKind, ClozeContent, RawCard

DIGEST_SIZE = 32
TOKEN_SEPARATOR = "\x1f"
FIELD_SEPARATOR = "\x1e"

# Apostrophes join the letters around them ("it's" -> "its").
APOSTROPHES = frozenset("'’ʼʻ‛＇")

# Punctuation that changes meaning, kept as standalone tokens.
SIGNIFICANT_MARKS = frozenset("+-")
CLOZE_MARKS = frozenset("[]")

STOPWORDS = frozenset(
    """
    i me my myself we our ours ourselves you your yours yourself yourselves
    he him his himself she her hers herself it its itself they them their
    theirs themselves what which who whom this that these those am is are
    was were be been being have has had having do does did doing a an the
    and but if or because as until while of at by for with about against
    between into through during before after above below to from up down in
    out on off over under again further then once here there when where why
    how all any both each few more most other some such no nor not only own
    same so than too very s t can will just don should now
    """.split()
)


def normalize_tokens(text: str, keep_cloze_marks: bool = False) -> list[str]:
    """
    Split text into the tokens that participate in the identity digest.

    Args:
        text: Raw card text.
        keep_cloze_marks: Emit "[" and "]" as tokens, so that moving a
            cloze deletion changes the identity.
    """
    tokens: list[str] = []
    word: list[str] = []

    def flush() -> None:
        if word:
            w = "".join(word)
            if w not in STOPWORDS:
                tokens.append(w)
            word.clear()

    for ch in text:
        if ch in APOSTROPHES:
            continue
        if ch in SIGNIFICANT_MARKS or (keep_cloze_marks and ch in CLOZE_MARKS):
            flush()
            tokens.append(ch)
        elif ch.isalnum():
            word.append(ch.lower())
        else:
            flush()

    flush()
    return tokens


def canonical_form(card: RawCard) -> str | None:
    """
    Build the exact string that is digested for a card.

    Returns None when the card has no hashable words at all.
    """
    match card.content:
        case BasicContent(front=front, back=back):
            front_tokens = normalize_tokens(front)
            back_tokens = normalize_tokens(back)
            if not front_tokens and not back_tokens:
                return None
            parts = [CardKind.BASIC.value, *front_tokens, FIELD_SEPARATOR, *back_tokens]
        case ClozeContent(text=text):
            tokens = normalize_tokens(text, keep_cloze_marks=True)
            if not any(t not in CLOZE_MARKS for t in tokens):
                return None
            parts = [CardKind.CLOZE.value, *tokens]
    return TOKEN_SEPARATOR.join(parts)


def digest(canonical: str) -> CardIdentity:
    return hashlib.blake2b(canonical.encode("utf-8"), digest_size=DIGEST_SIZE).hexdigest()


def identity(card: RawCard) -> CardIdentity:
    """
    Derive the stable identity of a card.

    Raises:
        CardParseError: if the card normalizes to nothing (e.g. only stopwords).
    """
    canonical = canonical_form(card)
    if canonical is None:
        raise CardParseError("Card has no words that can identify it")
    return digest(canonical)
