"""Domain errors raised by the watchlist services."""


class WatchlistError(Exception):
    """Base class for every error the services raise on purpose."""


class ValidationError(WatchlistError):
    """A required field is missing or malformed."""


class NotFoundError(WatchlistError):
    """The referenced user or entry does not exist."""


class ConflictError(WatchlistError):
    """The entry already exists for this user."""


class ProviderError(WatchlistError):
    """The metadata provider could not be reached or answered with an error."""


class PersistenceError(WatchlistError):
    """The database rejected a write; the transaction was rolled back."""
