"""TCP liveness probe."""

import logging
import socket

from wolwait.core.resolve import Endpoint
from wolwait.core.wol import TransportError

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 3.0


def probe(target: Endpoint, timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
    """
    Attempt one TCP connection to the target and close it straight away.

    Refused, unreachable and timed-out connects all count as "not up yet".

    Args:
        target: Endpoint to connect to
        timeout: Seconds the connect may take (default: 3)

    Returns:
        True if the connection was established, False otherwise

    Raises:
        TransportError: If the stream socket itself cannot be created
    """
    try:
        sock = socket.socket(target.family, socket.SOCK_STREAM, target.proto)
    except OSError as exc:
        raise TransportError("socket", f"Could not create TCP socket: {exc}") from exc

    with sock:
        sock.settimeout(timeout)
        try:
            sock.connect(target.sockaddr)
        except OSError as exc:
            logger.debug("%s not reachable: %s", target, exc)
            return False
    logger.debug("%s accepted a connection", target)
    return True
