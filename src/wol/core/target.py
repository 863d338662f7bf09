"""
Wake-up targets and the single-line target grammar.

A target line holds up to four whitespace-separated fields::

    <hardware-address> [<IP/DNS name>] [<port>] [<secure-on>]

Only the hardware address is required.  None of the fields are tagged, so
the meaning of fields 2 and 3 is decided from their shape alone (see
:func:`parse_target`).
"""

import ipaddress
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Union

from wol.core.eui48 import Eui48ParseError, MacAddress, SecureOn

logger = logging.getLogger(__name__)

MAX_FIELDS = 4
MAX_PORT = 65535

_PORT_RE = re.compile(r"[0-9]+")
ASCII_WHITESPACE = " \t\n\v\f\r"
_FIELD_SEPARATOR_RE = re.compile(f"[{re.escape(ASCII_WHITESPACE)}]+")
# Characters which only ever appear in an address-like literal, never in a port
_ADDRESS_SEPARATORS = frozenset(".:-")

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


# ── Destinations ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DnsDestination:
    """A host name, resolved only when the packet is sent."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IpDestination:
    """A literal IPv4 or IPv6 address."""

    address: IpAddress

    def __str__(self) -> str:
        return str(self.address)


MagicPacketDestination = Union[DnsDestination, IpDestination]


def parse_destination(s: str) -> MagicPacketDestination:
    """
    Classify ``s`` as an IP literal (IPv4 first, then IPv6) or a DNS name.

    Never fails: anything which is not an IP literal is taken as a DNS name
    as-is, and left to the resolver to accept or reject.
    """
    for address_type in (ipaddress.IPv4Address, ipaddress.IPv6Address):
        try:
            return IpDestination(address_type(s))
        except ValueError:
            continue
    return DnsDestination(s)


# ── Ports ─────────────────────────────────────────────────────────────────────


class PortParseError(ValueError):
    """Raised for text which is not a port number in 0–65535."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PortParseError):
            return NotImplemented
        return self.args == other.args

    def __hash__(self) -> int:
        return hash(self.args)


def parse_port(s: str) -> int:
    """Parse a decimal port number; leading zeros are fine, signs are not."""
    if not s:
        raise PortParseError("cannot parse port from empty string")
    if not _PORT_RE.fullmatch(s):
        raise PortParseError(f"invalid digit found in {s!r}")
    # Zero padding is unbounded; the significant digits are not
    digits = s.lstrip("0") or "0"
    if len(digits) > len(str(MAX_PORT)):
        raise PortParseError(f"{s} exceeds the largest port {MAX_PORT}")
    port = int(digits)
    if port > MAX_PORT:
        raise PortParseError(f"{s} exceeds the largest port {MAX_PORT}")
    return port


# ── Targets ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WakeupTarget:
    """A system to wake up, plus how to reach it.

    ``destination``, ``port`` and ``secure_on`` are None when the source did
    not specify them; filling in defaults is up to the caller.
    """

    hardware_address: MacAddress
    destination: Optional[MagicPacketDestination] = None
    port: Optional[int] = None
    secure_on: Optional[SecureOn] = None

    def __post_init__(self) -> None:
        if self.port is not None and not 0 <= self.port <= MAX_PORT:
            raise ValueError(f"port out of range: {self.port}")

    def with_destination(
        self, destination: Optional[MagicPacketDestination]
    ) -> "WakeupTarget":
        return replace(self, destination=destination)

    def with_port(self, port: Optional[int]) -> "WakeupTarget":
        return replace(self, port=port)

    def with_secure_on(self, secure_on: Optional[SecureOn]) -> "WakeupTarget":
        return replace(self, secure_on=secure_on)

    def __str__(self) -> str:
        fields = [str(self.hardware_address)]
        if self.destination is not None:
            fields.append(str(self.destination))
        if self.port is not None:
            fields.append(str(self.port))
        if self.secure_on is not None:
            fields.append(str(self.secure_on))
        return " ".join(fields)


# ── Errors ────────────────────────────────────────────────────────────────────


class WakeupTargetParseError(ValueError):
    """Base class for lines which do not describe a valid target."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), str(self)))


class EmptyLineError(WakeupTargetParseError):
    def __init__(self) -> None:
        super().__init__("Line empty")


class InvalidHardwareAddressError(WakeupTargetParseError):
    """The hardware address (always field 1) is not a valid EUI-48 literal."""

    field = 1

    def __init__(self, inner: Eui48ParseError) -> None:
        self.inner = inner
        super().__init__(f"Field 1: Invalid hardware address: {inner}")


class InvalidPortError(WakeupTargetParseError):
    def __init__(self, field: int, inner: PortParseError) -> None:
        self.field = field
        self.inner = inner
        super().__init__(f"Field {field}: Invalid port number: {inner}")


class InvalidSecureOnError(WakeupTargetParseError):
    def __init__(self, field: int, inner: Eui48ParseError) -> None:
        self.field = field
        self.inner = inner
        super().__init__(f"Field {field}: Invalid SecureON token: {inner}")


class TooManyFieldsError(WakeupTargetParseError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Expected {MAX_FIELDS} fields, got {count}")


# ── Line grammar ──────────────────────────────────────────────────────────────


def _hardware_address(field: str) -> MacAddress:
    try:
        return MacAddress.parse(field)
    except Eui48ParseError as exc:
        raise InvalidHardwareAddressError(exc) from exc


def _port(field: str, position: int) -> int:
    try:
        return parse_port(field)
    except PortParseError as exc:
        raise InvalidPortError(position, exc) from exc


def _secure_on(field: str, position: int) -> SecureOn:
    try:
        return SecureOn.parse(field)
    except Eui48ParseError as exc:
        raise InvalidSecureOnError(position, exc) from exc


# Each interpretation turns a field into WakeupTarget attributes, or raises
# ValueError if the field doesn't have that shape.  Tried top to bottom.
Interpretation = Callable[[str], dict[str, Any]]

# Field 2 of a two-field line
_SECOND_OF_TWO: list[tuple[str, Interpretation]] = [
    ("secure_on", lambda f: {"secure_on": SecureOn.parse(f)}),
    ("port", lambda f: {"port": parse_port(f)}),
    ("destination", lambda f: {"destination": parse_destination(f)}),
]

# Field 2 of a three-field line whose third field is a SecureON token
_SECOND_BEFORE_SECURE_ON: list[tuple[str, Interpretation]] = [
    ("port", lambda f: {"port": parse_port(f)}),
    ("destination", lambda f: {"destination": parse_destination(f)}),
]


def _interpret(field: str, interpretations: list[tuple[str, Interpretation]]) -> dict[str, Any]:
    for name, interpretation in interpretations:
        try:
            attributes = interpretation(field)
        except ValueError:
            continue
        logger.debug("Field %r interpreted as %s", field, name)
        return attributes
    # The last interpretation of every list is total
    raise AssertionError(f"no interpretation for field {field!r}")


def _parse_three(fields: list[str]) -> WakeupTarget:
    target = WakeupTarget(_hardware_address(fields[0]))
    second, third = fields[1], fields[2]
    try:
        secure_on = SecureOn.parse(third)
    except Eui48ParseError as exc:
        if _ADDRESS_SEPARATORS.intersection(third):
            # Separators rule out a port, so this is a mangled SecureON token
            raise InvalidSecureOnError(3, exc) from exc
        return replace(
            target,
            destination=parse_destination(second),
            port=_port(third, 3),
        )
    return replace(
        target, secure_on=secure_on, **_interpret(second, _SECOND_BEFORE_SECURE_ON)
    )


def parse_target(line: str) -> WakeupTarget:
    """
    Parse a single target line.

    The number of fields decides how they are read:

    1. ``MAC``
    2. ``MAC X`` where X is a SecureON token if it looks like one, else a
       port if it is a number, else a destination
    3. ``MAC X Y`` where Y is a SecureON token (X then is a port or a
       destination), or else Y is a port and X a destination; a Y containing
       ``.``, ``:`` or ``-`` is always reported as a bad SecureON token
    4. ``MAC DESTINATION PORT SECUREON``

    Args:
        line: One line of text, without comment handling

    Returns:
        The parsed target; fields missing from the line are None

    Raises:
        WakeupTargetParseError: A subclass naming the offending field
    """
    fields = [f for f in _FIELD_SEPARATOR_RE.split(line) if f]
    count = len(fields)
    if count == 0:
        raise EmptyLineError()
    if count > MAX_FIELDS:
        raise TooManyFieldsError(count)

    if count == 1:
        return WakeupTarget(_hardware_address(fields[0]))
    if count == 2:
        target = WakeupTarget(_hardware_address(fields[0]))
        return replace(target, **_interpret(fields[1], _SECOND_OF_TWO))
    if count == 3:
        return _parse_three(fields)
    return WakeupTarget(
        _hardware_address(fields[0]),
        destination=parse_destination(fields[1]),
        port=_port(fields[2], 3),
        secure_on=_secure_on(fields[3], 4),
    )
