"""Exception types raised by the resolver."""

from typing import Optional


class DNSResolverError(Exception):
    """Base class for resolver errors."""


class InputError(DNSResolverError, ValueError):
    """Invalid caller input, rejected before any network activity."""


class InvalidDomainError(InputError):
    """Domain name is empty or malformed."""


class InvalidAddressError(InputError):
    """IP address for a reverse lookup could not be parsed."""


class UnsupportedRecordTypeError(InputError):
    """Record type identifier is not one of the supported types."""


class TraceError(DNSResolverError):
    """A trace stopped on an error; ``steps`` holds the partial path."""

    def __init__(self, message: str, steps: Optional[list] = None):
        super().__init__(message)
        self.steps = steps or []
