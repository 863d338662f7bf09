"""
EUI-48 (MAC address) literals.

A literal is six two-digit hexadecimal byte groups joined by ``-`` or ``:``,
e.g. ``12-13-14-15-16-17`` or ``aa:BB:cc:DD:ee:FF``.  Whichever separator
follows the first group must be used for all remaining groups.

Hardware addresses and SecureON tokens share this syntax, but they are
different things, so the parsed bytes are always wrapped in either
:class:`MacAddress` or :class:`SecureOn`.
"""

import enum
import string
from dataclasses import dataclass

SEPARATORS = frozenset("-:")
EUI48_LENGTH = 6

_HEXDIGITS = frozenset(string.hexdigits)


class Eui48ErrorKind(enum.Enum):
    """What went wrong while parsing an EUI-48 literal."""

    INVALID_SEPARATOR = "invalid separator"
    INVALID_BYTE_LITERAL = "invalid byte literal"
    TRAILING_BYTES = "trailing bytes"


class Eui48ParseError(ValueError):
    """Raised for text which is not a valid EUI-48 literal."""

    def __init__(self, kind: Eui48ErrorKind, offset: int) -> None:
        self.kind = kind
        self.offset = offset
        super().__init__(f"{kind.value} at offset {offset}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Eui48ParseError):
            return NotImplemented
        return (self.kind, self.offset) == (other.kind, other.offset)

    def __hash__(self) -> int:
        return hash((self.kind, self.offset))


def parse_eui48_prefix(s: str) -> tuple[bytes, int]:
    """
    Parse an EUI-48 literal from the start of ``s``.

    Characters after the sixth byte group are left alone; the caller decides
    whether they matter.

    Returns:
        Tuple of (six raw bytes, number of characters consumed)

    Raises:
        Eui48ParseError: With the offset of the offending separator or group
    """
    octets = bytearray()
    separator = None
    pos = 0
    for index in range(EUI48_LENGTH):
        if index > 0:
            char = s[pos : pos + 1]
            if separator is None:
                if char not in SEPARATORS:
                    raise Eui48ParseError(Eui48ErrorKind.INVALID_SEPARATOR, pos)
                separator = char
            elif char != separator:
                raise Eui48ParseError(Eui48ErrorKind.INVALID_SEPARATOR, pos)
            pos += 1
        group = s[pos : pos + 2]
        if len(group) != 2 or not _HEXDIGITS.issuperset(group):
            raise Eui48ParseError(Eui48ErrorKind.INVALID_BYTE_LITERAL, pos)
        octets.append(int(group, 16))
        pos += 2
    return bytes(octets), pos


def parse_eui48(s: str) -> bytes:
    """Parse ``s`` as exactly one EUI-48 literal, rejecting anything after it."""
    octets, consumed = parse_eui48_prefix(s)
    if consumed < len(s):
        raise Eui48ParseError(Eui48ErrorKind.TRAILING_BYTES, consumed)
    return octets


def format_eui48(octets: bytes, separator: str = ":") -> str:
    if separator not in SEPARATORS:
        raise ValueError(f"separator must be one of '-' or ':', got {separator!r}")
    return separator.join(f"{b:02X}" for b in octets)


class _Eui48Value:
    """Shared behaviour of the six-byte value types (not a type of its own)."""

    octets: bytes

    def __post_init__(self) -> None:
        octets = bytes(self.octets)
        if len(octets) != EUI48_LENGTH:
            raise ValueError(
                f"{type(self).__name__} needs {EUI48_LENGTH} bytes, got {len(octets)}"
            )
        object.__setattr__(self, "octets", octets)

    def format(self, separator: str = ":") -> str:
        return format_eui48(self.octets, separator)

    def __bytes__(self) -> bytes:
        return self.octets

    def __str__(self) -> str:
        return self.format(":")

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self.format(':')}')"


@dataclass(frozen=True, order=True, repr=False)
class MacAddress(_Eui48Value):
    """The hardware address of the system to wake up."""

    octets: bytes

    @classmethod
    def parse(cls, s: str) -> "MacAddress":
        return cls(parse_eui48(s))


@dataclass(frozen=True, order=True, repr=False)
class SecureOn(_Eui48Value):
    """
    A SecureON token.

    Wake-capable NICs can be configured to require this six-byte token at the
    end of the magic packet.  It travels in plain text, so it only guards
    against accidental wake-ups and must not be treated as a secret.
    """

    octets: bytes

    @classmethod
    def parse(cls, s: str) -> "SecureOn":
        return cls(parse_eui48(s))
