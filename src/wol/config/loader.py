"""YAML configuration loader and validator."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from wol.core.target import (
    MAX_PORT,
    MagicPacketDestination,
    WakeupTarget,
    WakeupTargetParseError,
    parse_destination,
    parse_target,
)


@dataclass
class Settings:
    """Defaults for every target which does not say otherwise."""

    host: Optional[MagicPacketDestination] = None
    port: Optional[int] = None
    ipv6: bool = False
    # Milliseconds to wait between two magic packets
    wait: int = 0


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
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    settings = config.get("settings", {}) or {}
    if not isinstance(settings, dict):
        errors.append("'settings' must be a mapping")
    else:
        host = settings.get("host")
        if host is not None and (not isinstance(host, str) or not host.strip()):
            errors.append(f"settings.host: must be a non-empty string, got {host!r}")
        port = settings.get("port")
        if port is not None and (
            isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT
        ):
            errors.append(f"settings.port: must be an integer in 0–{MAX_PORT}, got {port!r}")
        wait = settings.get("wait")
        if wait is not None and (isinstance(wait, bool) or not isinstance(wait, int) or wait < 0):
            errors.append(f"settings.wait: must be a non-negative integer, got {wait!r}")
        ipv6 = settings.get("ipv6")
        if ipv6 is not None and not isinstance(ipv6, bool):
            errors.append(f"settings.ipv6: must be true or false, got {ipv6!r}")

    hosts = config.get("hosts", {}) or {}
    if not isinstance(hosts, dict):
        errors.append("'hosts' must be a mapping of name to target line")
        return errors

    for name, line in hosts.items():
        prefix = f"hosts.{name}"
        if not isinstance(line, str):
            errors.append(f"{prefix}: must be a target line string")
            continue
        try:
            parse_target(line)
        except WakeupTargetParseError as exc:
            errors.append(f"{prefix}: {exc}")

    return errors


def settings_from_config(config: dict[str, Any]) -> Settings:
    """
    Construct Settings from a validated config dict.

    Args:
        config: Parsed and validated config dictionary

    Returns:
        Settings, with dataclass defaults for everything not configured
    """
    raw = config.get("settings", {}) or {}
    host = raw.get("host")
    return Settings(
        host=parse_destination(host.strip()) if host else None,
        port=raw.get("port"),
        ipv6=bool(raw.get("ipv6") or False),
        wait=int(raw.get("wait") or 0),
    )


def hosts_from_config(config: dict[str, Any]) -> dict[str, WakeupTarget]:
    """
    Parse the named host aliases of a validated config dict.

    Returns:
        Mapping of alias to WakeupTarget
    """
    return {
        str(name): parse_target(line)
        for name, line in (config.get("hosts", {}) or {}).items()
    }
