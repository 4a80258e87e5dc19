"""Wake-and-wait orchestration."""

import enum
import logging
import math
import time
from dataclasses import dataclass
from typing import Optional

from wolwait.core.probe import DEFAULT_PROBE_TIMEOUT, probe
from wolwait.core.resolve import Endpoint
from wolwait.core.wol import TransportError, open_wake_socket, send_payload

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    """How a wake-and-wait run ended."""

    SUCCESS = "success"
    TIMED_OUT = "timed_out"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class WaitPolicy:
    """How long to wait and how often to retry."""

    timeout: float = 300.0  # seconds, 0 waits forever
    retry_delay: float = 5.0
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT

    def __post_init__(self) -> None:
        if not math.isfinite(self.timeout) or self.timeout < 0:
            raise ValueError(f"timeout must be 0 (unbounded) or positive, got {self.timeout}")
        if not math.isfinite(self.retry_delay) or self.retry_delay <= 0:
            raise ValueError(f"retry_delay must be positive, got {self.retry_delay}")
        if not math.isfinite(self.probe_timeout) or self.probe_timeout <= 0:
            raise ValueError(f"probe_timeout must be positive, got {self.probe_timeout}")

    @property
    def unbounded(self) -> bool:
        return self.timeout == 0


@dataclass
class RunOutcome:
    """Terminal state of one wake-and-wait run."""

    status: Outcome
    attempts: int = 0
    elapsed: float = 0.0
    kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is Outcome.SUCCESS


def run(
    payload: bytes,
    wake_endpoint: Endpoint,
    target_endpoint: Endpoint,
    policy: WaitPolicy,
    broadcast: bool = True,
) -> RunOutcome:
    """
    Send wake packets and probe the target until it answers or time runs out.

    Each attempt sends ``payload`` to ``wake_endpoint`` and then tries one TCP
    connection to ``target_endpoint``. A hard socket error ends the run at
    once; an unreachable target is retried every ``policy.retry_delay``
    seconds until ``policy.timeout`` has elapsed (forever when it is 0).

    Args:
        payload: Magic packet from ``build_payload``
        wake_endpoint: Datagram endpoint the payload is sent to
        target_endpoint: Stream endpoint probed for liveness
        policy: Timeout and retry settings
        broadcast: Enable ``SO_BROADCAST`` on the wake socket

    Returns:
        RunOutcome with the terminal status, attempt count and elapsed time
    """
    started = time.monotonic()
    deadline = None if policy.unbounded else started + policy.timeout
    attempts = 0

    try:
        sock = open_wake_socket(wake_endpoint, broadcast=broadcast)
    except TransportError as exc:
        logger.error("%s", exc)
        return RunOutcome(Outcome.TRANSPORT_FAILURE, kind=exc.kind, error=str(exc))

    with sock:
        while True:
            attempts += 1
            try:
                send_payload(sock, payload, wake_endpoint)
                reachable = probe(target_endpoint, timeout=policy.probe_timeout)
            except TransportError as exc:
                logger.error("%s", exc)
                return RunOutcome(
                    Outcome.TRANSPORT_FAILURE,
                    attempts=attempts,
                    elapsed=time.monotonic() - started,
                    kind=exc.kind,
                    error=str(exc),
                )

            now = time.monotonic()
            if reachable:
                logger.info(
                    "%s is up after %d attempt(s), %.1f s", target_endpoint, attempts, now - started
                )
                return RunOutcome(Outcome.SUCCESS, attempts=attempts, elapsed=now - started)

            if deadline is not None and now >= deadline:
                logger.warning(
                    "%s did not come up within %g s (%d attempt(s))",
                    target_endpoint,
                    policy.timeout,
                    attempts,
                )
                return RunOutcome(
                    Outcome.TIMED_OUT,
                    attempts=attempts,
                    elapsed=now - started,
                    error=f"Timed out after {policy.timeout:g} s waiting for {target_endpoint}",
                )

            logger.debug(
                "Attempt %d: %s not up yet, retrying in %g s",
                attempts,
                target_endpoint,
                policy.retry_delay,
            )
            time.sleep(policy.retry_delay)
