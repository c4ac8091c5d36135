"""
Error types raised while provisioning library packages.
"""


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    def __init__(self, message, library_id=None):
        super().__init__(message)
        self.library_id = library_id


class NotFound(ProvisioningError):
    """The package index has no record for a library/version pair."""


class TransportError(ProvisioningError):
    """A request to the package index or artifact host failed."""

    def __init__(self, message, library_id=None, url=None, status_code=None):
        super().__init__(message, library_id=library_id)
        self.url = url
        self.status_code = status_code


class NoMatch(ProvisioningError):
    """No candidate build satisfies the requested build properties."""


class PathTraversal(ProvisioningError):
    """An archive entry would be written outside the destination root."""

    def __init__(self, message, library_id=None, entry_name=None):
        super().__init__(message, library_id=library_id)
        self.entry_name = entry_name


class ExtractionError(ProvisioningError):
    """The archive stream could not be decompressed, decoded or written."""
