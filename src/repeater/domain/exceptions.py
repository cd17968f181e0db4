"""Exception hierarchy shared by every layer."""


class RepeaterError(Exception):
    """Base class for errors the CLI reports to the user."""


class CardParseError(RepeaterError):
    """A card block in a deck is malformed."""


class StoreError(RepeaterError):
    """The card store could not be opened, read or written."""


class DuplicateCardError(RepeaterError):
    """A card being saved already has history under the same identity."""

    def __init__(self, identity: str, message: str | None = None):
        self.identity = identity
        super().__init__(message or f"A card with identity {identity[:12]} already exists")


class CorruptRecordError(RepeaterError):
    """A persisted scheduling record is missing fields or out of range."""

    def __init__(self, identity: str | None, reason: str):
        self.identity = identity
        self.reason = reason
        super().__init__(f"Corrupt record {identity or '<unknown>'}: {reason}")
