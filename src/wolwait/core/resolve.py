"""Resolution of wake and target endpoints."""

import logging
import socket
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST = "255.255.255.255"


class ResolutionError(Exception):
    """Raised when a host or port cannot be turned into a socket address."""

    def __init__(self, host: str, message: str) -> None:
        super().__init__(f"Unable to resolve {host}: {message}")
        self.host = host


@dataclass(frozen=True)
class Endpoint:
    """One resolved socket address together with the family used to reach it."""

    host: str
    family: int
    socktype: int
    proto: int
    sockaddr: tuple[Any, ...]

    def __str__(self) -> str:
        address, port = self.sockaddr[0], self.sockaddr[1]
        if self.family == socket.AF_INET6:
            return f"{self.host} ([{address}]:{port})"
        return f"{self.host} ({address}:{port})"


def _parse_port(host: str, port: str) -> int:
    if not (port.isascii() and port.isdigit()) or not 1 <= int(port) <= 65535:
        raise ResolutionError(host, f"invalid port {port!r}")
    return int(port)


def resolve(host: str, port: str, socktype: int = socket.SOCK_STREAM) -> list[Endpoint]:
    """
    Resolve a host name or numeric address into candidate endpoints.

    Args:
        host: Host name, IPv4 or IPv6 address
        port: Decimal port number, 1-65535
        socktype: ``SOCK_STREAM`` or ``SOCK_DGRAM``

    Returns:
        Endpoints in the order the system resolver returned them

    Raises:
        ResolutionError: If the port is invalid or the name does not resolve
    """
    number = _parse_port(host, str(port))
    try:
        infos = socket.getaddrinfo(host, number, type=socktype)
    except socket.gaierror as exc:
        raise ResolutionError(host, exc.strerror or str(exc)) from exc
    except UnicodeError as exc:
        raise ResolutionError(host, str(exc)) from exc
    if not infos:
        raise ResolutionError(host, "no addresses returned")
    return [
        Endpoint(host=host, family=family, socktype=kind, proto=proto, sockaddr=sockaddr)
        for family, kind, proto, _, sockaddr in infos
    ]


def wake_endpoint(
    target_host: str,
    broadcast: str = DEFAULT_BROADCAST,
    port: str = "9",
    direct: bool = False,
) -> Endpoint:
    """
    Resolve where the wake payload is sent.

    In direct mode the payload goes to the target host's own address instead
    of ``broadcast``. The first candidate is used.
    """
    host = target_host if direct else broadcast
    endpoint = resolve(host, port, socket.SOCK_DGRAM)[0]
    logger.debug("Wake endpoint: %s%s", endpoint, " (direct)" if direct else "")
    return endpoint


def target_endpoint(host: str, port: str) -> Endpoint:
    """Resolve the endpoint probed for liveness; the first candidate is used."""
    endpoint = resolve(host, port, socket.SOCK_STREAM)[0]
    logger.debug("Target endpoint: %s", endpoint)
    return endpoint
