# Domain Package
from .exceptions import (
    CardParseError,
    CorruptRecordError,
    DuplicateCardError,
    RepeaterError,
    StoreError,
)
from .models import (
    BasicContent,
    CardContent,
    CardIdentity,
    CardKind,
    CardRecord,
    CardState,
    ClozeContent,
    ClozeSpan,
    ParseIssue,
    RawCard,
    Rating,
    ReviewEvent,
    SourceLocation,
    WorkingCard,
    WorkingSet,
)
from .ports import CardStore

__all__ = [
    "BasicContent",
    "CardContent",
    "CardIdentity",
    "CardKind",
    "CardParseError",
    "CardRecord",
    "CardState",
    "CardStore",
    "ClozeContent",
    "ClozeSpan",
    "CorruptRecordError",
    "DuplicateCardError",
    "ParseIssue",
    "RawCard",
    "Rating",
    "RepeaterError",
    "ReviewEvent",
    "SourceLocation",
    "StoreError",
    "WorkingCard",
    "WorkingSet",
]
