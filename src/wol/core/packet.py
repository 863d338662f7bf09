"""Magic packet assembly.

Packet layout::

    +-------------------+--------------------------------+-------------------+
    |   Sync stream     |  Target MAC, 16 repetitions    | SecureON (opt.)   |
    |   6 x 0xFF        |  16 x 6 bytes                  | 6 bytes           |
    +-------------------+--------------------------------+-------------------+

A packet is exactly 102 bytes, or 108 bytes with a SecureON token.  There is
no padding and no other valid length.
"""

import logging
from typing import BinaryIO, Optional

from wol.core.eui48 import MacAddress, SecureOn

logger = logging.getLogger(__name__)

SYNC_STREAM = b"\xFF" * 6
MAC_REPETITIONS = 16
MAGIC_PACKET_LENGTH = len(SYNC_STREAM) + MAC_REPETITIONS * 6  # 102
MAGIC_PACKET_SECURE_ON_LENGTH = MAGIC_PACKET_LENGTH + 6  # 108


class MagicPacketTruncatedError(RuntimeError):
    """
    Raised when a magic packet was only partially written or sent.

    A truncated packet is meaningless and cannot be resumed, so this signals a
    broken transport rather than anything to retry.
    """

    def __init__(self, written: int, expected: int) -> None:
        self.written = written
        self.expected = expected
        super().__init__(f"magic packet truncated: wrote {written} of {expected} bytes")


def _check_buffer(buffer: bytearray, expected: int) -> None:
    if len(buffer) != expected:
        raise ValueError(f"buffer must be exactly {expected} bytes, got {len(buffer)}")


def fill_magic_packet(buffer: bytearray, mac_address: MacAddress) -> None:
    """Fill a 102-byte ``buffer`` with a magic packet waking ``mac_address``."""
    _check_buffer(buffer, MAGIC_PACKET_LENGTH)
    buffer[0:6] = SYNC_STREAM
    for i in range(MAC_REPETITIONS):
        base = (i + 1) * 6
        buffer[base : base + 6] = mac_address.octets


def fill_magic_packet_secure_on(
    buffer: bytearray, mac_address: MacAddress, secure_on: SecureOn
) -> None:
    """Fill a 108-byte ``buffer`` with a magic packet ending in ``secure_on``."""
    _check_buffer(buffer, MAGIC_PACKET_SECURE_ON_LENGTH)
    body = bytearray(MAGIC_PACKET_LENGTH)
    fill_magic_packet(body, mac_address)
    buffer[:MAGIC_PACKET_LENGTH] = body
    buffer[MAGIC_PACKET_LENGTH:] = secure_on.octets


def build_magic_packet(
    mac_address: MacAddress, secure_on: Optional[SecureOn] = None
) -> bytes:
    """
    Build a complete magic packet.

    Args:
        mac_address: Hardware address of the system to wake
        secure_on: Optional SecureON token to append

    Returns:
        102 bytes, or 108 bytes if ``secure_on`` is given
    """
    if secure_on is None:
        buffer = bytearray(MAGIC_PACKET_LENGTH)
        fill_magic_packet(buffer, mac_address)
    else:
        buffer = bytearray(MAGIC_PACKET_SECURE_ON_LENGTH)
        fill_magic_packet_secure_on(buffer, mac_address, secure_on)
    return bytes(buffer)


def _write_all(sink: BinaryIO, data: bytes) -> None:
    written = sink.write(data)
    # Raw (unbuffered) streams may return a short count; buffered ones don't.
    if written is not None and written != len(data):
        raise MagicPacketTruncatedError(written, len(data))


def write_magic_packet(
    sink: BinaryIO,
    mac_address: MacAddress,
    secure_on: Optional[SecureOn] = None,
) -> None:
    """
    Stream a magic packet into ``sink``.

    The bytes written are identical to :func:`build_magic_packet`; the
    SecureON tail is only written if ``secure_on`` is given.

    Raises:
        MagicPacketTruncatedError: If ``sink`` accepts fewer bytes than given
        OSError: Whatever the underlying ``sink.write`` raises
    """
    _write_all(sink, SYNC_STREAM)
    for _ in range(MAC_REPETITIONS):
        _write_all(sink, mac_address.octets)
    if secure_on is not None:
        _write_all(sink, secure_on.octets)
    logger.debug(
        "Wrote magic packet for %s (%s SecureON)",
        mac_address,
        "with" if secure_on is not None else "without",
    )
