"""Exception types raised by bibdedupe."""

__all__ = [
    "BibdedupeError",
    "ConfigurationError",
    "ParseError",
]


class BibdedupeError(Exception):
    """Base class for all bibdedupe errors."""


class ConfigurationError(BibdedupeError, ValueError):
    """Raised when a deduplication configuration is invalid.

    Covers unknown ``match_by`` fields, unknown match methods, thresholds
    outside ``[0, 1]`` and malformed configuration files. Raised before any
    comparison work starts.
    """


class ParseError(BibdedupeError):
    """Raised when a bibliographic file cannot be imported."""

    def __init__(
        self,
        message: str,
        file: str | None = None,
    ) -> None:
        """Initialize parse error.

        Parameters
        ----------
        message : str
            Error message.
        file : str | None, optional
            File where error occurred.
        """
        super().__init__(message)
        self.file = file
