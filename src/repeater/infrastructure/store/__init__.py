from .sqlite_store import SqliteCardStore

__all__ = ["SqliteCardStore"]
