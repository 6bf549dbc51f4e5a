"""
Error types for payload fetching.

Every error is fatal to the invoking command. The runner maps each kind
to its own exit code so callers can tell an unreachable oracle apart from
an oracle that answered with inconsistent data.
"""


class PayloadError(Exception):
    """Base exception for payload errors"""
    exit_code = 1


class UsageError(PayloadError):
    """Raised when a command is invoked with the wrong arguments"""
    exit_code = 1


class UpstreamError(PayloadError):
    """Raised when an oracle service or its response cannot be used"""
    exit_code = 2


class PayloadParseError(UpstreamError):
    """Raised when a signed payload blob is malformed"""
    pass


class ConsistencyError(PayloadError):
    """Raised when signed data packages disagree on their timestamp"""
    exit_code = 3
