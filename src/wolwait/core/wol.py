"""Wake-on-LAN payload construction and delivery."""

import logging
import re
import socket
from string import hexdigits

from wakeonlan import create_magic_packet

from wolwait.core.resolve import Endpoint

logger = logging.getLogger(__name__)

PAYLOAD_SIZE = 102
DEFAULT_WOL_PORT = 9

_SEPARATORS = frozenset(":-.")
_HEXDIGITS = frozenset(hexdigits)
_OCTET_RE = re.compile(r"[0-9A-Fa-f]{1,2}")


class TransportError(Exception):
    """Raised when a socket cannot be created, configured or written to."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


def parse_mac(text: str) -> bytes:
    """
    Parse a textual MAC address into its 6-byte form.

    Each octet is one or two hex digits, optionally preceded by one of
    ``:``, ``-`` or ``.``, so ``AA:BB:CC:DD:EE:FF``, ``aabb.ccdd.eeff``,
    ``aabbccddeeff`` and ``a:b:c:d:e:f`` are all accepted.

    Raises:
        ValueError: If the text is not a MAC address
    """
    octets = []
    pos = 0
    for _ in range(6):
        if text[pos : pos + 1] in _SEPARATORS and text[pos + 1 : pos + 2] in _HEXDIGITS:
            pos += 1
        match = _OCTET_RE.match(text, pos)
        if match is None:
            raise ValueError(f"Invalid MAC address: {text!r}")
        octets.append(int(match.group(), 16))
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"Invalid MAC address: {text!r}")
    return bytes(octets)


def build_payload(mac: bytes) -> bytes:
    """
    Build the 102-byte magic packet for a hardware address.

    Args:
        mac: The 6-byte hardware address

    Returns:
        Six 0xFF bytes followed by the address repeated 16 times
    """
    if len(mac) != 6:
        raise ValueError(f"Hardware address must be 6 bytes, got {len(mac)}")
    return create_magic_packet(mac.hex())


def open_wake_socket(endpoint: Endpoint, broadcast: bool = True) -> socket.socket:
    """
    Create the datagram socket the wake payload is sent from.

    ``SO_BROADCAST`` is enabled for IPv4 endpoints when ``broadcast`` is set.

    Raises:
        TransportError: kind ``"socket"`` or ``"setsockopt"``
    """
    try:
        sock = socket.socket(endpoint.family, socket.SOCK_DGRAM)
    except OSError as exc:
        raise TransportError("socket", f"Could not create UDP socket: {exc}") from exc

    if broadcast and endpoint.family == socket.AF_INET:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError as exc:
            sock.close()
            raise TransportError(
                "setsockopt", f"Could not enable broadcast on UDP socket: {exc}"
            ) from exc
    return sock


def send_payload(sock: socket.socket, payload: bytes, endpoint: Endpoint) -> None:
    """
    Send the payload as one datagram to the wake endpoint.

    A refusal left over from an earlier ICMP port-unreachable only means
    nothing listens on the wake port, which is normal, so it is not an error.

    Raises:
        TransportError: kind ``"send"`` on any other socket error
    """
    try:
        sock.sendto(payload, endpoint.sockaddr)
    except ConnectionRefusedError:
        logger.debug("Wake port on %s refused the datagram", endpoint)
        return
    except OSError as exc:
        raise TransportError("send", f"Could not send WOL packet to {endpoint}: {exc}") from exc
    logger.debug("WOL packet sent to %s", endpoint)
