"""
Timestamp consistency check for signed data packages.

Packages signed for the same payload must agree on their timestamp. The
first package sets the reference and the first disagreement aborts.
"""

from fractions import Fraction
from typing import Iterable, Tuple
import logging

from .errors import ConsistencyError, PayloadParseError

logger = logging.getLogger(__name__)

MILLISECONDS_PER_SECOND = 1000


def milliseconds_to_seconds(timestamp_ms: int) -> Fraction:
    """Exact conversion, sub-second remainders are kept"""
    return Fraction(timestamp_ms, MILLISECONDS_PER_SECOND)


def check_uniform_timestamp(packages: Iterable[Tuple[int, int]]) -> int:
    """
    Check that all packages share one timestamp.

    Args:
        packages: (index, timestamp in milliseconds) pairs, in payload order

    Returns:
        Shared timestamp in seconds

    Raises:
        ConsistencyError: a package disagrees with the first one
        PayloadParseError: no packages, or the shared timestamp is not a
            whole number of seconds
    """
    reference = None

    for index, timestamp_ms in packages:
        seconds = milliseconds_to_seconds(timestamp_ms)
        logger.info(f"Data package {index}: timestamp {timestamp_ms}")

        if reference is None:
            reference = seconds
        elif seconds != reference:
            raise ConsistencyError("Timestamps are not equal")

    if reference is None:
        raise PayloadParseError("Payload contains no data packages")

    if reference.denominator != 1:
        raise PayloadParseError(
            f"Timestamp {float(reference)}s is not a whole number of seconds"
        )

    return int(reference)
