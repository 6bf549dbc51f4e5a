"""
Redstone payload binary format.

A payload is read from its end:

    [signed data packages][packages count: 2]
    [unsigned metadata][metadata size: 3][redstone marker: 9]

and each signed data package, again from its end:

    [data points][timestamp ms: 6][value byte size: 4]
    [data points count: 3][signature: 65]

where a data point is a 32-byte feed id followed by its value. All
integers are big-endian.
"""

from decimal import Decimal
from typing import Iterable, List, Tuple

from ...errors import PayloadParseError
from ...keys import KEY_SIZE
from ...models.redstone import (
    DataPoint,
    DataPackage,
    SignedDataPackage,
    ParsedPayload,
)

REDSTONE_MARKER = bytes.fromhex("000002ed57011e0000")

UNSIGNED_METADATA_BYTE_SIZE_BS = 3
DATA_PACKAGES_COUNT_BS = 2
DATA_POINTS_COUNT_BS = 3
DATA_POINT_VALUE_BYTE_SIZE_BS = 4
TIMESTAMP_BS = 6
SIGNATURE_BS = 65

DEFAULT_NUM_VALUE_BS = 32
DEFAULT_NUM_VALUE_DECIMALS = 8


class _ReverseReader:
    """Consumes fixed-size fields from the end of a buffer"""

    def __init__(self, data: bytes):
        self.data = data
        self.end = len(data)

    def take(self, size: int, what: str) -> bytes:
        if size > self.end:
            raise PayloadParseError(
                f"Payload truncated: need {size} bytes for {what}, {self.end} left"
            )
        chunk = self.data[self.end - size:self.end]
        self.end -= size
        return chunk

    def take_int(self, size: int, what: str) -> int:
        return int.from_bytes(self.take(size, what), "big")


def _parse_signed_data_package(reader: _ReverseReader) -> SignedDataPackage:
    signature = reader.take(SIGNATURE_BS, "signature")
    points_count = reader.take_int(DATA_POINTS_COUNT_BS, "data points count")
    value_size = reader.take_int(DATA_POINT_VALUE_BYTE_SIZE_BS, "value byte size")
    timestamp_ms = reader.take_int(TIMESTAMP_BS, "timestamp")

    data_points = []
    for _ in range(points_count):
        value = reader.take(value_size, "data point value")
        data_feed_id = reader.take(KEY_SIZE, "data feed id")
        data_points.append(DataPoint(data_feed_id=data_feed_id, value=value))
    data_points.reverse()

    return SignedDataPackage(
        data_package=DataPackage(
            data_points=data_points,
            timestamp_milliseconds=timestamp_ms,
        ),
        signature=signature,
    )


def parse_payload(payload: bytes) -> ParsedPayload:
    """
    Parse a raw Redstone payload.

    Raises:
        PayloadParseError: marker missing, fields truncated or unexpected
            bytes in front of the first package
    """
    reader = _ReverseReader(payload)

    marker = reader.take(len(REDSTONE_MARKER), "redstone marker")
    if marker != REDSTONE_MARKER:
        raise PayloadParseError(f"Redstone marker not found, got 0x{marker.hex()}")

    metadata_size = reader.take_int(UNSIGNED_METADATA_BYTE_SIZE_BS, "metadata size")
    unsigned_metadata = reader.take(metadata_size, "unsigned metadata")
    packages_count = reader.take_int(DATA_PACKAGES_COUNT_BS, "data packages count")

    packages = [_parse_signed_data_package(reader) for _ in range(packages_count)]
    packages.reverse()

    if reader.end != 0:
        raise PayloadParseError(
            f"{reader.end} unexpected bytes before the first data package"
        )

    return ParsedPayload(
        signed_data_packages=packages,
        unsigned_metadata=unsigned_metadata,
    )


def serialize_data_package(package: DataPackage) -> bytes:
    """Serialize an unsigned data package; data points sorted by feed id"""
    value_size = package.value_byte_size
    points = sorted(package.data_points, key=lambda p: p.data_feed_id)

    body = bytearray()
    for point in points:
        if len(point.data_feed_id) != KEY_SIZE:
            raise ValueError(f"Data feed id must be {KEY_SIZE} bytes")
        if len(point.value) != value_size:
            raise ValueError("All data point values in a package must have the same size")
        body += point.data_feed_id + point.value

    body += package.timestamp_milliseconds.to_bytes(TIMESTAMP_BS, "big")
    body += value_size.to_bytes(DATA_POINT_VALUE_BYTE_SIZE_BS, "big")
    body += len(points).to_bytes(DATA_POINTS_COUNT_BS, "big")
    return bytes(body)


def serialize_payload(
    packages: Iterable[SignedDataPackage],
    unsigned_metadata: bytes = b"",
) -> bytes:
    """Serialize signed data packages into a Redstone payload"""
    packages = list(packages)

    body = bytearray()
    for package in packages:
        if len(package.signature) != SIGNATURE_BS:
            raise ValueError(f"Signature must be {SIGNATURE_BS} bytes")
        body += serialize_data_package(package.data_package) + package.signature

    body += len(packages).to_bytes(DATA_PACKAGES_COUNT_BS, "big")
    body += unsigned_metadata
    body += len(unsigned_metadata).to_bytes(UNSIGNED_METADATA_BYTE_SIZE_BS, "big")
    body += REDSTONE_MARKER
    return bytes(body)


def encode_numeric_value(
    value,
    decimals: int = DEFAULT_NUM_VALUE_DECIMALS,
    byte_size: int = DEFAULT_NUM_VALUE_BS,
) -> bytes:
    """Encode a number as a fixed-size integer scaled by 10**decimals"""
    scaled = Decimal(str(value)).scaleb(decimals).to_integral_value()
    return int(scaled).to_bytes(byte_size, "big")


def package_timestamps(parsed: ParsedPayload) -> List[Tuple[int, int]]:
    """(index, timestamp ms) pairs in payload order"""
    return [
        (index, package.timestamp_milliseconds)
        for index, package in enumerate(parsed.signed_data_packages)
    ]
