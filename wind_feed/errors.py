"""Exceptions raised by the wind_feed package."""


class WindFeedError(Exception):
    """Base class for wind_feed errors."""


class CategorizationError(WindFeedError):
    """The AI categorization response did not match the expected shape."""


class RefreshUnauthorized(WindFeedError):
    """A manual refresh was requested with a missing or wrong secret."""
