"""
Exception classes for peerdoc.

All peerdoc exceptions inherit from PeerDocError. Import failures are not
exceptions: the resolver reports them as ImportDiagnostic records.

Example:
    >>> try:
    ...     SourceFormat.coerce("docx")
    ... except UnsupportedFormatError as e:
    ...     print(f"Format not supported: {e}")
"""


class PeerDocError(Exception):
    """Base exception for all peerdoc errors."""

    pass


class UnsupportedFormatError(PeerDocError):
    """
    Raised when a source or export format name is not recognised.

    Example:
        >>> SourceFormat.coerce("rst")
        UnsupportedFormatError: Unsupported source format 'rst' (expected markdown or tex)
    """

    pass


class ConfigurationError(PeerDocError):
    """
    Raised for invalid configuration.

    Example:
        >>> ResolverConfig(max_depth=-1)
        ConfigurationError: max_depth must be >= 0, got -1
    """

    pass
