"""Tests for endpoint resolution."""

import socket
from unittest.mock import MagicMock, patch

import pytest

from wolwait.core.resolve import (
    Endpoint,
    ResolutionError,
    resolve,
    target_endpoint,
    wake_endpoint,
)


class TestResolve:
    """Tests for resolve."""

    def test_numeric_ipv4(self) -> None:
        endpoints = resolve("192.0.2.10", "22")

        assert endpoints[0].family == socket.AF_INET
        assert endpoints[0].sockaddr == ("192.0.2.10", 22)
        assert endpoints[0].socktype == socket.SOCK_STREAM

    def test_numeric_ipv6(self) -> None:
        endpoints = resolve("2001:db8::1", "22")

        assert endpoints[0].family == socket.AF_INET6
        assert endpoints[0].sockaddr[:2] == ("2001:db8::1", 22)

    def test_datagram_socktype(self) -> None:
        endpoints = resolve("255.255.255.255", "9", socket.SOCK_DGRAM)
        assert all(e.socktype == socket.SOCK_DGRAM for e in endpoints)

    @pytest.mark.parametrize("port", ["0", "65536", "-1", "ssh", "", "22x"])
    def test_invalid_port(self, port: str) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            resolve("192.0.2.10", port)
        assert "192.0.2.10" in str(excinfo.value)

    @patch(
        "wolwait.core.resolve.socket.getaddrinfo",
        side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
    )
    def test_unresolvable_name(self, mock_gai: MagicMock) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            resolve("no-such-host.invalid", "22")

        assert excinfo.value.host == "no-such-host.invalid"
        assert "Name or service not known" in str(excinfo.value)

    @patch("wolwait.core.resolve.socket.getaddrinfo")
    def test_preserves_resolver_order(self, mock_gai: MagicMock) -> None:
        mock_gai.return_value = [
            (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("2001:db8::5", 22, 0, 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.5", 22)),
        ]

        endpoints = resolve("dual.example", "22")

        assert [e.family for e in endpoints] == [socket.AF_INET6, socket.AF_INET]
        assert all(e.host == "dual.example" for e in endpoints)


class TestWakeEndpoint:
    """Tests for wake_endpoint."""

    def test_default_broadcast(self) -> None:
        endpoint = wake_endpoint("192.0.2.10")

        assert endpoint.sockaddr == ("255.255.255.255", 9)
        assert endpoint.socktype == socket.SOCK_DGRAM

    def test_custom_broadcast_and_port(self) -> None:
        endpoint = wake_endpoint("192.0.2.10", broadcast="192.0.2.255", port="7")
        assert endpoint.sockaddr == ("192.0.2.255", 7)

    def test_direct_uses_target_address(self) -> None:
        endpoint = wake_endpoint("192.0.2.10", broadcast="192.0.2.255", direct=True)
        assert endpoint.sockaddr == ("192.0.2.10", 9)

    @patch("wolwait.core.resolve.socket.getaddrinfo")
    def test_picks_first_candidate(self, mock_gai: MagicMock) -> None:
        mock_gai.return_value = [
            (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("192.0.2.1", 9)),
            (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("192.0.2.2", 9)),
        ]
        assert wake_endpoint("host", direct=True).sockaddr == ("192.0.2.1", 9)


class TestTargetEndpoint:
    """Tests for target_endpoint."""

    def test_stream_endpoint(self) -> None:
        endpoint = target_endpoint("192.0.2.10", "22")

        assert endpoint.socktype == socket.SOCK_STREAM
        assert endpoint.sockaddr == ("192.0.2.10", 22)

    def test_str_formats_ipv6_in_brackets(self) -> None:
        sockaddr = ("2001:db8::1", 22, 0, 0)
        endpoint = Endpoint("nas", socket.AF_INET6, socket.SOCK_STREAM, 6, sockaddr)
        assert str(endpoint) == "nas ([2001:db8::1]:22)"
