"""Click-based command line entry point for otpmigrate."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import click

from . import __version__
from .errors import IncompatibleAccountType, OtpMigrateError
from .export import AuthenticatorExporter, LastPassExporter, to_csv, to_json
from .ingest import InputUnit, UnitOutcome, process_units, read_units, uri_unit
from .logging_conf import configure_logging
from .models import Account, AccountSet
from .settings import Settings, load_settings

log = logging.getLogger(__name__)

EXPORT_FORMATS = ("authenticator", "lastpass", "json", "csv")


@click.group(help="Extract OTP secrets from authenticator exports and re-package them.")
@click.version_option(__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="YAML settings file (defaults to $OTPMIGRATE_CONFIG).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """
    Root CLI group configuring logging and settings before subcommands execute.
    """

    configure_logging("DEBUG" if verbose else "INFO")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        ctx.obj["settings"] = load_settings(config_path)
    except OtpMigrateError as exc:
        raise click.ClickException(str(exc)) from exc


_inputs = click.argument("files", nargs=-1, type=click.Path(path_type=Path, exists=True, dir_okay=False))
_uris = click.option("--uri", "uris", multiple=True, help="Scanned migration URI, may be repeated.")


@cli.command("inspect")
@_inputs
@_uris
@click.option("--show-secrets", is_flag=True, default=False, help="Print base32 secrets as well.")
def cli_inspect(files: Tuple[Path, ...], uris: Tuple[str, ...], show_secrets: bool) -> None:
    """List the accounts found in backups and scanned codes."""

    account_set, outcomes = _collect(files, uris)
    _report(outcomes)
    for index, account in enumerate(account_set, start=1):
        line = f"{index:3d}. {account.label} [{account.kind_name}] {account.uri}"
        if show_secrets:
            line += f" secret={account.secret_base32}"
        click.echo(line)


@cli.command("export")
@_inputs
@_uris
@click.option(
    "--format",
    "fmt",
    required=True,
    type=click.Choice(EXPORT_FORMATS),
    help="Target export format.",
)
@click.option("--match", default=None, help="Only export accounts whose label contains this text.")
@click.option(
    "--drop-incompatible",
    is_flag=True,
    default=False,
    help="Deselect accounts the target format cannot hold instead of failing.",
)
@click.option("--out", "out", default=None, type=click.Path(path_type=Path, dir_okay=False))
@click.pass_context
def cli_export(
    ctx: click.Context,
    files: Tuple[Path, ...],
    uris: Tuple[str, ...],
    fmt: str,
    match: Optional[str],
    drop_incompatible: bool,
    out: Optional[Path],
) -> None:
    """Export the selected accounts as migration codes or backup files."""

    settings: Settings = ctx.obj["settings"]
    account_set, outcomes = _collect(files, uris)
    _report(outcomes)
    _apply_selection(account_set, match)
    log.info("selected %d of %d account(s) for %s export", len(account_set.selected), len(account_set), fmt)

    try:
        lines = _run_export(fmt, account_set, settings, drop_incompatible)
    except OtpMigrateError as exc:
        raise click.ClickException(str(exc)) from exc

    content = "\n".join(lines) if fmt in ("authenticator", "lastpass") else lines[0]
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(content if content.endswith("\n") else content + "\n", encoding="utf-8")
        click.echo(f"wrote {out}", err=True)
    else:
        click.echo(content, nl=not content.endswith("\n"))


def _collect(files: Sequence[Path], uris: Sequence[str]) -> Tuple[AccountSet, List[UnitOutcome]]:
    units: List[InputUnit] = read_units(files)
    units.extend(uri_unit(uri, index) for index, uri in enumerate(uris, start=1))
    if not units:
        raise click.UsageError("no input files or --uri given")
    account_set = AccountSet()
    outcomes = process_units(units, account_set)
    return account_set, outcomes


def _report(outcomes: List[UnitOutcome]) -> None:
    for outcome in outcomes:
        click.echo(outcome.describe(), err=True)


def _apply_selection(account_set: AccountSet, match: Optional[str]) -> None:
    if match is None:
        account_set.select_all()
        return
    needle = match.lower()
    account_set.select(account.fingerprint for account in account_set if needle in account.label.lower())


def _run_export(fmt: str, account_set: AccountSet, settings: Settings, drop_incompatible: bool) -> List[str]:
    selection: List[Account] = account_set.selected_accounts()
    if fmt == "authenticator":
        return AuthenticatorExporter(settings.authenticator).export_all(selection)
    if fmt == "lastpass":
        exporter = LastPassExporter(settings.lastpass)
        try:
            return [exporter.export(selection)]
        except IncompatibleAccountType as exc:
            if not drop_incompatible or len(exc.accounts) == len(selection):
                raise
            account_set.deselect(account.fingerprint for account in exc.accounts)
            click.echo(
                f"LastPass only supports TOTP accounts; {len(exc.accounts)} incompatible account(s) "
                "removed from the selection",
                err=True,
            )
            return [exporter.export(account_set.selected_accounts())]
    if fmt == "json":
        return [to_json(selection)]
    return [to_csv(selection)]


def main(argv: Optional[Iterable[str]] = None) -> int:
    """
    Entry point returning an exit code for console scripts.
    """

    argv_list = list(argv or sys.argv[1:])
    try:
        cli.main(args=argv_list, prog_name="otpmigrate", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return 1
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
