"""Error taxonomy for the listing query engine."""


class ListingQueryError(Exception):
    """Base exception for listing queries."""
    pass


class InvalidArgument(ListingQueryError):
    """Malformed or out-of-range filter, pagination or coordinate value."""
    pass


class BackendUnavailable(ListingQueryError):
    """The persistence store could not be reached or the read timed out."""
    pass


class InconsistentSchema(ListingQueryError):
    """Raw-query results could not be correlated with typed records."""
    pass
