"""Command-line interface for wolwait."""

import enum
import logging
import math
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import click
import yaml

from wolwait import __version__
from wolwait.config.loader import (
    ConfigError,
    HostProfile,
    find_host,
    hosts_from_config,
    load_config,
    validate_config,
)

DEFAULT_CONFIG = Path.home() / ".config" / "wolwait" / "config.yaml"

logger = logging.getLogger(__name__)


class ExitStatus(enum.IntEnum):
    SUCCESS = 0
    TIMEOUT = 1
    USAGE = 2  # what click itself exits with on bad options
    RESOLUTION = 3
    SOCKET = 4
    SEND = 5
    CONFIG = 6


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _fail(status: ExitStatus, message: str) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(status)


def _load_profile(config: str, name: str) -> HostProfile:
    path = Path(config)
    if not path.exists():
        _fail(ExitStatus.CONFIG, f"Config file not found: {path}")
    try:
        raw = load_config(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        _fail(ExitStatus.CONFIG, f"Could not read config {path}: {exc}")
    if not raw:
        _fail(ExitStatus.CONFIG, "Config file is empty.")
    errors = validate_config(raw)
    if errors:
        click.echo("Config validation errors:", err=True)
        for e in errors:
            click.echo(f"  • {e}", err=True)
        sys.exit(ExitStatus.CONFIG)
    try:
        return find_host(hosts_from_config(raw), name)
    except ConfigError as exc:
        _fail(ExitStatus.CONFIG, str(exc))


class _Seconds(click.FloatRange):
    """A positive, finite number of seconds."""

    name = "seconds"

    def __init__(self) -> None:
        super().__init__(min=0, min_open=True)

    def convert(
        self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> Any:
        rv = super().convert(value, param, ctx)
        if not math.isfinite(rv):
            self.fail(f"{value!r} is not a finite number of seconds.", param, ctx)
        return rv


_positive = _Seconds()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="wolwait")
@click.argument("args", nargs=-1, metavar="[MAC HOST PORT]")
@click.option(
    "--timeout", "-w", type=_positive, help="Seconds to wait for the host  [default: 300]"
)
@click.option("--forever", "-f", is_flag=True, help="Wait forever")
@click.option("--address", "-A", help="Broadcast address  [default: 255.255.255.255]")
@click.option(
    "--wol-port", "-P", type=click.IntRange(1, 65535), help="Broadcast port  [default: 9]"
)
@click.option(
    "--delay", "-d", type=_positive, help="Seconds between connection attempts  [default: 5]"
)
@click.option(
    "--probe-timeout",
    type=_positive,
    help="Seconds each connection attempt may take  [default: 3]",
)
@click.option("--direct", is_flag=True, help="Send the wake packet to the host itself")
@click.option("--name", "-n", help="Wake a host profile from the config file")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="WOLWAIT_CONFIG",
    show_default=True,
    help="Path to wolwait config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(
    args: tuple[str, ...],
    timeout: Optional[float],
    forever: bool,
    address: Optional[str],
    wol_port: Optional[int],
    delay: Optional[float],
    probe_timeout: Optional[float],
    direct: bool,
    name: Optional[str],
    config: str,
    verbose: bool,
) -> None:
    """Wake MAC over the LAN and wait until HOST accepts connections on PORT.

    Exits 0 once the host is up, 1 on timeout, 2 on usage errors, 3 when a
    name does not resolve, 4 on socket errors, 5 when the wake packet cannot
    be sent and 6 on config errors.
    """
    _setup_logging(verbose)

    from wolwait.core.resolve import (
        DEFAULT_BROADCAST,
        ResolutionError,
        target_endpoint,
        wake_endpoint,
    )
    from wolwait.core.wait import Outcome, WaitPolicy, run
    from wolwait.core.wol import DEFAULT_WOL_PORT, build_payload, parse_mac

    if forever and timeout is not None:
        raise click.UsageError("--timeout and --forever cannot be combined")
    if direct and address is not None:
        raise click.UsageError("--address and --direct cannot be combined")

    if name is not None:
        if args:
            raise click.UsageError("--name takes no MAC/HOST/PORT arguments")
        profile = _load_profile(config, name)
    elif len(args) != 3:
        raise click.UsageError("Expected MAC HOST PORT (or --name)")
    else:
        mac_a, host_a, port_a = args
        if not (port_a.isascii() and port_a.isdigit()) or not 1 <= int(port_a) <= 65535:
            raise click.BadParameter(f"invalid port {port_a!r}", param_hint="PORT")
        profile = HostProfile(name=host_a, mac_address=mac_a, host=host_a, port=int(port_a))

    try:
        mac = parse_mac(profile.mac_address)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="MAC") from None

    if address is not None:
        broadcast, use_direct = address, False
    else:
        broadcast, use_direct = profile.broadcast or DEFAULT_BROADCAST, direct or profile.direct

    policy = WaitPolicy(
        timeout=0 if forever else (timeout if timeout is not None else profile.timeout),
        retry_delay=delay if delay is not None else profile.retry_delay,
        probe_timeout=probe_timeout if probe_timeout is not None else profile.probe_timeout,
    )

    try:
        target = target_endpoint(profile.host, str(profile.port))
        wake_at = wake_endpoint(
            profile.host,
            broadcast=broadcast,
            port=str(wol_port or profile.wol_port or DEFAULT_WOL_PORT),
            direct=use_direct,
        )
    except ResolutionError as exc:
        _fail(ExitStatus.RESOLUTION, str(exc))

    logger.info("Waking %s (%s), waiting for %s", profile.name, mac.hex(":"), target)
    outcome = run(build_payload(mac), wake_at, target, policy, broadcast=not use_direct)

    if outcome.status is Outcome.SUCCESS:
        return
    if outcome.status is Outcome.TIMED_OUT:
        _fail(ExitStatus.TIMEOUT, outcome.error or "Timed out")
    status = ExitStatus.SEND if outcome.kind == "send" else ExitStatus.SOCKET
    _fail(status, outcome.error or "Socket error")


if __name__ == "__main__":
    main()
