"""Wake-on-LAN transport: resolve a destination and send the magic packet."""

import ipaddress
import logging
import socket
from typing import Optional, Union

from wol.core.eui48 import MacAddress, SecureOn
from wol.core.packet import MagicPacketTruncatedError, build_magic_packet
from wol.core.target import (
    DnsDestination,
    IpDestination,
    MagicPacketDestination,
    WakeupTarget,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 40000
IPV4_BROADCAST = IpDestination(ipaddress.IPv4Address("255.255.255.255"))
IPV6_ALL_NODES = IpDestination(ipaddress.IPv6Address("ff02::1"))

# (host, port) for IPv4, (host, port, flowinfo, scope_id) for IPv6
SocketAddress = Union[tuple[str, int], tuple[str, int, int, int]]


class HostUnreachableError(OSError):
    """Raised when a DNS destination resolves to no usable address."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Host {name} not reachable")


def default_destination(prefer_ipv6: bool = False) -> IpDestination:
    """The broadcast (IPv4) or all-nodes multicast (IPv6) address."""
    return IPV6_ALL_NODES if prefer_ipv6 else IPV4_BROADCAST


def resolve_destination(
    destination: MagicPacketDestination,
    port: int,
    prefer_ipv6: bool = False,
) -> tuple[socket.AddressFamily, SocketAddress]:
    """
    Turn a destination into an address family and socket address.

    Args:
        destination: IP literal, or DNS name to resolve
        port: UDP port
        prefer_ipv6: Pick the first IPv6 result of a DNS lookup instead of
            whatever the resolver returns first

    Returns:
        Tuple of (address family, socket address for ``sendto``)

    Raises:
        HostUnreachableError: If a DNS name has no (IPv6) address
        socket.gaierror: If DNS resolution itself fails
    """
    if isinstance(destination, IpDestination):
        address = destination.address
        if address.version == 6:
            scope = address.scope_id  # type: ignore[union-attr]
            scope_id = 0
            if scope:
                scope_id = int(scope) if scope.isdigit() else socket.if_nametoindex(scope)
            host = str(address).split("%", 1)[0]
            return socket.AF_INET6, (host, port, 0, scope_id)
        return socket.AF_INET, (str(address), port)

    if not isinstance(destination, DnsDestination):
        raise TypeError(f"not a magic packet destination: {destination!r}")
    infos = socket.getaddrinfo(destination.name, port, type=socket.SOCK_DGRAM)
    for family, _, _, _, sockaddr in infos:
        if prefer_ipv6 and family != socket.AF_INET6:
            continue
        logger.debug("Resolved %s to %s", destination.name, sockaddr[0])
        return family, sockaddr
    raise HostUnreachableError(destination.name)


def send_magic_packet_on(
    sock: socket.socket,
    mac_address: MacAddress,
    secure_on: Optional[SecureOn],
    address: SocketAddress,
) -> None:
    """
    Send one magic packet over an existing datagram socket.

    Raises:
        MagicPacketTruncatedError: If the socket sent only part of the packet
        OSError: Whatever ``sendto`` raises
    """
    packet = build_magic_packet(mac_address, secure_on)
    sent = sock.sendto(packet, address)
    # Datagram sockets send all or nothing; anything else is a broken stack.
    if sent != len(packet):
        raise MagicPacketTruncatedError(sent, len(packet))
    logger.debug("Sent %d byte magic packet for %s to %s", sent, mac_address, address)


def send_magic_packet(
    mac_address: MacAddress,
    secure_on: Optional[SecureOn],
    family: socket.AddressFamily,
    address: SocketAddress,
) -> None:
    """
    Send one magic packet from a fresh UDP socket.

    The socket is bound to the unspecified address of ``family`` and allowed
    to broadcast.
    """
    bind_host = "::" if family == socket.AF_INET6 else "0.0.0.0"
    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.bind((bind_host, 0))
        send_magic_packet_on(sock, mac_address, secure_on, address)


def wake(
    target: WakeupTarget,
    destination: Optional[MagicPacketDestination] = None,
    port: int = DEFAULT_PORT,
    secure_on: Optional[SecureOn] = None,
    prefer_ipv6: bool = False,
) -> SocketAddress:
    """
    Send a Wake-on-LAN magic packet to wake up ``target``.

    Fields the target leaves unset fall back to the given defaults.

    Args:
        target: The system to wake
        destination: Default destination (default: broadcast, see
            :func:`default_destination`)
        port: Default UDP port (default: 40000)
        secure_on: Default SecureON token
        prefer_ipv6: Prefer IPv6 results when resolving DNS names

    Returns:
        The socket address the packet was sent to
    """
    chosen = target.destination or destination or default_destination(prefer_ipv6)
    chosen_port = target.port if target.port is not None else port
    token = target.secure_on if target.secure_on is not None else secure_on

    family, address = resolve_destination(chosen, chosen_port, prefer_ipv6)
    logger.info(
        "Sending WOL magic packet to %s via %s:%d", target.hardware_address, chosen, chosen_port
    )
    send_magic_packet(target.hardware_address, token, family, address)
    return address
