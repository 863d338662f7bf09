"""Command-line interface for wol."""

import itertools
import logging
import sys
import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, BinaryIO, Optional

import click
from click.core import ParameterSource

from wol import __version__
from wol.core.eui48 import Eui48ParseError, MacAddress, SecureOn
from wol.core.target import MagicPacketDestination, WakeupTarget, parse_destination

DEFAULT_CONFIG = Path.home() / ".config" / "wol" / "config.yaml"

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_cfg(config: str, explicit: bool) -> dict[str, Any]:
    from wol.config.loader import load_config, validate_config

    path = Path(config).expanduser()
    if not path.exists():
        if explicit:
            click.echo(f"Config file not found: {path}", err=True)
            sys.exit(1)
        return {}
    raw = load_config(path)
    if not raw:
        return {}
    errors = validate_config(raw)
    if errors:
        click.echo("Config validation errors:", err=True)
        for e in errors:
            click.echo(f"  • {e}", err=True)
        sys.exit(1)
    return raw


# ── Parameter types ───────────────────────────────────────────────────────────


class SecureOnParamType(click.ParamType):
    name = "secureon"

    def convert(
        self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> SecureOn:
        if isinstance(value, SecureOn):
            return value
        try:
            return SecureOn.parse(value)
        except Eui48ParseError as exc:
            self.fail(f"{value!r} is not a valid SecureON token: {exc}", param, ctx)


class DestinationParamType(click.ParamType):
    name = "host"

    def convert(
        self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> MagicPacketDestination:
        if not isinstance(value, str):
            return value  # type: ignore[no-any-return]
        if not value.strip():
            self.fail("host must not be empty", param, ctx)
        return parse_destination(value.strip())


SECURE_ON = SecureOnParamType()
DESTINATION = DestinationParamType()


def _targets_from_arguments(
    arguments: tuple[str, ...], aliases: dict[str, WakeupTarget]
) -> list[WakeupTarget]:
    targets: list[WakeupTarget] = []
    for argument in arguments:
        if argument in aliases:
            targets.append(aliases[argument])
            continue
        try:
            targets.append(WakeupTarget(MacAddress.parse(argument)))
        except Eui48ParseError as exc:
            raise click.BadParameter(
                f"{argument!r} is neither a hardware address nor a configured host: {exc}",
                param_hint="'MAC-ADDRESS...'",
            ) from exc
    return targets


def _targets_from_file(stream: BinaryIO, label: str, failures: list[str]) -> Iterator[WakeupTarget]:
    from wol.core.wakeup_file import from_reader

    for item in from_reader(stream):
        if isinstance(item, WakeupTarget):
            yield item
        else:
            message = f"{label}: {item}"
            click.echo(message, err=True)
            failures.append(message)


# ── Command ───────────────────────────────────────────────────────────────────


@click.command(context_settings={"help_option_names": ["-?", "--help"]})
@click.version_option(version=__version__, prog_name="wol")
@click.option(
    "--host",
    "-h",
    "-i",
    "--ipaddr",
    "host",
    type=DESTINATION,
    default=None,
    help="Send the magic packet to HOST, a DNS name or IP address; usually a broadcast "
    "address  [default: 255.255.255.255, or ff02::1 with --ipv6]",
)
@click.option("--ipv6", "-6", is_flag=True, help="Prefer IPv6 when resolving DNS names")
@click.option(
    "--port",
    "-p",
    type=click.IntRange(0, 65535),
    default=None,
    help="Send the magic packet to PORT  [default: 40000]",
)
@click.option(
    "--file",
    "-f",
    "wakeup_file",
    type=click.File("rb"),
    default=None,
    help="Read systems to wake up from FILE, or stdin if FILE is -",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option(
    "--wait",
    "-w",
    type=click.IntRange(min=0),
    default=None,
    metavar="MSECS",
    help="Wait MSECS milliseconds after each magic packet",
)
@click.option("--passwd", type=SECURE_ON, default=None, help="Include this SecureON token")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="WOL_CONFIG",
    show_default=True,
    help="Path to wol config.yaml",
)
@click.argument("hardware_addresses", nargs=-1, metavar="[MAC-ADDRESS]...")
@click.pass_context
def main(
    ctx: click.Context,
    host: Optional[MagicPacketDestination],
    ipv6: bool,
    port: Optional[int],
    wakeup_file: Optional[BinaryIO],
    verbose: bool,
    wait: Optional[int],
    passwd: Optional[SecureOn],
    config: str,
    hardware_addresses: tuple[str, ...],
) -> None:
    """Wake up remote hosts with Wake-on-LAN magic packets.

    MAC-ADDRESS is a hardware address like 12:13:14:15:16:17 or the name of a
    host configured in the config file.  Lines of a wakeup file hold a hardware
    address and, optionally, a host, a port, and a SecureON token; missing
    fields fall back to the options.
    """
    _setup_logging(verbose)
    if not hardware_addresses and wakeup_file is None:
        raise click.UsageError("Missing argument 'MAC-ADDRESS...' or option '--file'.", ctx)

    from wol.config.loader import hosts_from_config, settings_from_config
    from wol.core.send import DEFAULT_PORT, default_destination, wake

    source = ctx.get_parameter_source("config")
    raw = _load_cfg(config, explicit=source is not ParameterSource.DEFAULT)
    settings = settings_from_config(raw)
    aliases = hosts_from_config(raw)

    prefer_ipv6 = ipv6 or settings.ipv6
    default_host = host or settings.host or default_destination(prefer_ipv6)
    default_port = next(p for p in (port, settings.port, DEFAULT_PORT) if p is not None)
    wait_ms = settings.wait if wait is None else wait

    failures: list[str] = []
    targets: Iterable[WakeupTarget] = _targets_from_arguments(hardware_addresses, aliases)
    if wakeup_file is not None:
        label = str(getattr(wakeup_file, "name", "-"))
        targets = itertools.chain(targets, _targets_from_file(wakeup_file, label, failures))

    for index, target in enumerate(targets):
        if index > 0 and wait_ms > 0:
            time.sleep(wait_ms / 1000)
        resolved = (
            target.with_destination(target.destination or default_host)
            .with_port(target.port if target.port is not None else default_port)
            .with_secure_on(target.secure_on or passwd)
        )
        if verbose:
            click.echo(
                f"Waking up {resolved.hardware_address} with "
                f"{resolved.destination}:{resolved.port}..."
            )
        else:
            click.echo(f"Waking up {resolved.hardware_address}...")
        try:
            wake(resolved, prefer_ipv6=prefer_ipv6)
        except OSError as exc:
            message = f"Failed to wake up {resolved.hardware_address}: {exc}"
            click.echo(message, err=True)
            failures.append(message)

    if failures:
        logger.debug("%d failure(s)", len(failures))
        sys.exit(1)


if __name__ == "__main__":
    main()
