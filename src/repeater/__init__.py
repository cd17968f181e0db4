"""repeater: spaced repetition for cards embedded in Markdown notes."""

from repeater.consts import VERSION

__version__ = VERSION
