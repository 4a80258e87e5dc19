"""YAML host profile loader and validator."""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from wolwait.core.probe import DEFAULT_PROBE_TIMEOUT
from wolwait.core.resolve import DEFAULT_BROADCAST
from wolwait.core.wol import DEFAULT_WOL_PORT, parse_mac

DEFAULT_TIMEOUT = 300.0
DEFAULT_RETRY_DELAY = 5.0


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


@dataclass
class HostProfile:
    """A named machine to wake, as described in the config file."""

    name: str
    mac_address: str
    host: str
    port: int
    broadcast: str = DEFAULT_BROADCAST
    wol_port: int = DEFAULT_WOL_PORT
    direct: bool = False
    timeout: float = DEFAULT_TIMEOUT
    retry_delay: float = DEFAULT_RETRY_DELAY
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    description: str = ""


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        UnicodeDecodeError: If the file is not UTF-8
    """
    with open(path, encoding="utf-8") as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def _is_port(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 65535


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
    )


def _check_shared_fields(prefix: str, section: dict[str, Any], errors: list[str]) -> None:
    timeout = section.get("timeout")
    if timeout is not None and not (_is_number(timeout) and timeout >= 0):
        errors.append(f"{prefix}: timeout must be a number >= 0 (0 waits forever)")
    for key in ("retry_delay", "probe_timeout"):
        value = section.get(key)
        if value is not None and not (_is_number(value) and value > 0):
            errors.append(f"{prefix}: {key} must be a positive number")
    wol_port = section.get("wol_port")
    if wol_port is not None and not _is_port(wol_port):
        errors.append(f"{prefix}: wol_port must be an integer between 1 and 65535")
    broadcast = section.get("broadcast")
    if broadcast is not None and not isinstance(broadcast, str):
        errors.append(f"{prefix}: broadcast must be a string")


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    settings = config.get("settings", {})
    if not isinstance(settings, dict):
        errors.append("'settings' must be a mapping")
    else:
        _check_shared_fields("settings", settings, errors)

    hosts = config.get("hosts")
    if not hosts:
        errors.append("'hosts' key is required and must be a non-empty list")
        return errors

    if not isinstance(hosts, list):
        errors.append("'hosts' must be a list")
        return errors

    seen: set[str] = set()
    for i, host in enumerate(hosts):
        prefix = f"hosts[{i}]"
        if not isinstance(host, dict):
            errors.append(f"{prefix}: must be a mapping")
            continue
        for field in ("name", "mac_address", "host", "port"):
            if not host.get(field):
                errors.append(f"{prefix}: missing required field '{field}'")
        for field in ("name", "mac_address", "host", "description"):
            value = host.get(field)
            if value and not isinstance(value, str):
                errors.append(f"{prefix}: '{field}' must be a string")
        direct = host.get("direct")
        if direct is not None and not isinstance(direct, bool):
            errors.append(f"{prefix}: 'direct' must be true or false")
        name = host.get("name")
        if isinstance(name, str) and name:
            if name in seen:
                errors.append(f"{prefix}: duplicate host name '{name}'")
            seen.add(name)
        mac = host.get("mac_address")
        if isinstance(mac, str) and mac:
            try:
                parse_mac(mac)
            except ValueError:
                errors.append(f"{prefix}: invalid mac_address '{mac}'")
        port = host.get("port")
        if port and not _is_port(port):
            errors.append(f"{prefix}: port must be an integer between 1 and 65535")
        if host.get("direct") and host.get("broadcast"):
            errors.append(f"{prefix}: 'direct' and 'broadcast' cannot both be set")
        _check_shared_fields(prefix, host, errors)

    return errors


def hosts_from_config(config: dict[str, Any]) -> list[HostProfile]:
    """
    Construct HostProfile objects from a validated config dict.

    Per-host values override the ``settings`` section, which overrides the
    built-in defaults.
    """
    settings = config.get("settings") or {}
    default_broadcast = settings.get("broadcast", DEFAULT_BROADCAST)

    hosts: list[HostProfile] = []
    for raw in config.get("hosts", []):
        hosts.append(
            HostProfile(
                name=raw["name"],
                mac_address=str(raw["mac_address"]),
                host=str(raw["host"]),
                port=int(raw["port"]),
                broadcast=raw.get("broadcast", default_broadcast),
                wol_port=int(raw.get("wol_port", settings.get("wol_port", DEFAULT_WOL_PORT))),
                direct=bool(raw.get("direct", False)),
                timeout=float(raw.get("timeout", settings.get("timeout", DEFAULT_TIMEOUT))),
                retry_delay=float(
                    raw.get("retry_delay", settings.get("retry_delay", DEFAULT_RETRY_DELAY))
                ),
                probe_timeout=float(
                    raw.get("probe_timeout", settings.get("probe_timeout", DEFAULT_PROBE_TIMEOUT))
                ),
                description=raw.get("description", ""),
            )
        )
    return hosts


def find_host(hosts: list[HostProfile], name: str) -> HostProfile:
    """
    Look up a profile by name.

    Raises:
        ConfigError: If no profile has that name
    """
    match = next((h for h in hosts if h.name == name), None)
    if match is None:
        raise ConfigError(f"Host '{name}' not found in config")
    return match
