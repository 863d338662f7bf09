"""Tests for resolving destinations and sending magic packets."""

import socket
from ipaddress import IPv4Address, IPv6Address
from unittest.mock import MagicMock, patch

import pytest

from wol.core.eui48 import MacAddress, SecureOn
from wol.core.packet import MagicPacketTruncatedError, build_magic_packet
from wol.core.send import (
    DEFAULT_PORT,
    HostUnreachableError,
    resolve_destination,
    send_magic_packet,
    send_magic_packet_on,
    wake,
)
from wol.core.target import DnsDestination, IpDestination, WakeupTarget

MAC = MacAddress.parse("AA:BB:CC:DD:EE:FF")
TOKEN = SecureOn.parse("12:13:14:15:16:42")

_ADDRINFO = [
    (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("192.0.2.7", 9)),
    (socket.AF_INET6, socket.SOCK_DGRAM, 17, "", ("2001:db8::7", 9, 0, 0)),
]


class TestResolveDestination:
    """Tests for resolve_destination."""

    def test_ipv4_literal(self) -> None:
        destination = IpDestination(IPv4Address("192.0.2.4"))
        assert resolve_destination(destination, 9) == (socket.AF_INET, ("192.0.2.4", 9))

    def test_ipv6_literal(self) -> None:
        destination = IpDestination(IPv6Address("ff02::1"))
        assert resolve_destination(destination, 9) == (socket.AF_INET6, ("ff02::1", 9, 0, 0))

    @patch("wol.core.send.socket.getaddrinfo", return_value=_ADDRINFO)
    def test_dns_takes_first_result(self, mock_gai: MagicMock) -> None:
        result = resolve_destination(DnsDestination("host.example.com"), 9)
        assert result == (socket.AF_INET, ("192.0.2.7", 9))
        mock_gai.assert_called_once_with("host.example.com", 9, type=socket.SOCK_DGRAM)

    @patch("wol.core.send.socket.getaddrinfo", return_value=_ADDRINFO)
    def test_dns_prefer_ipv6(self, mock_gai: MagicMock) -> None:
        result = resolve_destination(DnsDestination("host.example.com"), 9, prefer_ipv6=True)
        assert result == (socket.AF_INET6, ("2001:db8::7", 9, 0, 0))

    @patch("wol.core.send.socket.getaddrinfo", return_value=_ADDRINFO[:1])
    def test_dns_prefer_ipv6_without_ipv6_result(self, mock_gai: MagicMock) -> None:
        with pytest.raises(HostUnreachableError) as excinfo:
            resolve_destination(DnsDestination("v4only.example.com"), 9, prefer_ipv6=True)
        assert "v4only.example.com" in str(excinfo.value)

    @patch("wol.core.send.socket.getaddrinfo", side_effect=socket.gaierror("no such host"))
    def test_dns_failure_is_an_os_error(self, mock_gai: MagicMock) -> None:
        with pytest.raises(OSError):
            resolve_destination(DnsDestination("nowhere.invalid"), 9)


    def test_unknown_destination_type(self) -> None:
        with pytest.raises(TypeError):
            resolve_destination("192.0.2.4", 9)  # type: ignore[arg-type]


class TestSendMagicPacketOn:
    def test_sends_whole_packet(self) -> None:
        sock = MagicMock()
        sock.sendto.return_value = 108

        send_magic_packet_on(sock, MAC, TOKEN, ("192.0.2.4", 9))

        sock.sendto.assert_called_once_with(build_magic_packet(MAC, TOKEN), ("192.0.2.4", 9))

    def test_short_send_is_fatal(self) -> None:
        sock = MagicMock()
        sock.sendto.return_value = 50

        with pytest.raises(MagicPacketTruncatedError):
            send_magic_packet_on(sock, MAC, None, ("192.0.2.4", 9))
        sock.sendto.assert_called_once()


class TestSendMagicPacket:
    @patch("wol.core.send.socket.socket")
    def test_binds_broadcast_socket(self, mock_socket_cls: MagicMock) -> None:
        sock = MagicMock()
        sock.sendto.return_value = 102
        mock_socket_cls.return_value.__enter__.return_value = sock

        send_magic_packet(MAC, None, socket.AF_INET, ("255.255.255.255", 9))

        mock_socket_cls.assert_called_once_with(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt.assert_called_once_with(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.bind.assert_called_once_with(("0.0.0.0", 0))
        sock.sendto.assert_called_once_with(build_magic_packet(MAC), ("255.255.255.255", 9))

    @patch("wol.core.send.socket.socket")
    def test_ipv6_binds_unspecified_ipv6(self, mock_socket_cls: MagicMock) -> None:
        sock = MagicMock()
        sock.sendto.return_value = 102
        mock_socket_cls.return_value.__enter__.return_value = sock

        send_magic_packet(MAC, None, socket.AF_INET6, ("ff02::1", 9, 0, 0))

        mock_socket_cls.assert_called_once_with(socket.AF_INET6, socket.SOCK_DGRAM)
        sock.bind.assert_called_once_with(("::", 0))


class TestWake:
    """Tests for wake function."""

    @patch("wol.core.send.send_magic_packet")
    def test_wake_defaults_to_broadcast(self, mock_send: MagicMock) -> None:
        """Should send to 255.255.255.255 on the default port."""
        address = wake(WakeupTarget(MAC))

        assert address == ("255.255.255.255", DEFAULT_PORT)
        mock_send.assert_called_once_with(
            MAC, None, socket.AF_INET, ("255.255.255.255", DEFAULT_PORT)
        )

    @patch("wol.core.send.send_magic_packet")
    def test_wake_ipv6_default(self, mock_send: MagicMock) -> None:
        address = wake(WakeupTarget(MAC), prefer_ipv6=True)
        assert address == ("ff02::1", DEFAULT_PORT, 0, 0)

    @patch("wol.core.send.send_magic_packet")
    def test_wake_custom_broadcast_and_port(self, mock_send: MagicMock) -> None:
        """Caller defaults apply to fields the target leaves unset."""
        broadcast = IpDestination(IPv4Address("192.168.1.255"))

        wake(WakeupTarget(MAC), destination=broadcast, port=7, secure_on=TOKEN)

        mock_send.assert_called_once_with(MAC, TOKEN, socket.AF_INET, ("192.168.1.255", 7))

    @patch("wol.core.send.send_magic_packet")
    def test_target_fields_win_over_defaults(self, mock_send: MagicMock) -> None:
        other = SecureOn.parse("00:00:00:00:00:01")
        target = WakeupTarget(MAC, IpDestination(IPv4Address("192.0.2.4")), 9, other)

        wake(target, destination=IpDestination(IPv4Address("192.168.1.255")), port=7, secure_on=TOKEN)

        mock_send.assert_called_once_with(MAC, other, socket.AF_INET, ("192.0.2.4", 9))

    @patch("wol.core.send.send_magic_packet")
    def test_port_zero_is_not_missing(self, mock_send: MagicMock) -> None:
        wake(WakeupTarget(MAC, port=0), port=7)
        assert mock_send.call_args[0][3] == ("255.255.255.255", 0)
