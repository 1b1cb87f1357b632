#!/usr/bin/env python3
"""Grist Sync - Entry point."""
import logging
import sys

import click
from colorama import Fore, Style, init

from config import app_config
from grist_sync import __version__
from grist_sync.api.grist_url import parse_grist_url
from grist_sync.errors import ConfigError
from grist_sync.models import SyncResult
from grist_sync.sync.job import build_service, load_job

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Grist Sync{Fore.CYAN}                           ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}External source -> Grist table{Fore.CYAN}       ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


def configure_logging(verbose: bool) -> None:
    """Set up root logging from the flag or GRIST_SYNC_LOG_LEVEL."""
    level = logging.DEBUG if verbose else getattr(logging, app_config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def print_result(result: SyncResult):
    """Print a sync result summary."""
    title = "Dry run results" if result.dry_run else "Synchronization results"
    click.echo(f"\n{Fore.CYAN}📈 {title}:")
    click.echo(f"  Added:     {result.added}")
    click.echo(f"  Updated:   {result.updated}")
    click.echo(f"  Unchanged: {result.unchanged}")
    click.echo(f"  Skipped:   {result.skipped}")
    click.echo(f"  Errors:    {result.errors}")
    click.echo(f"  Duration:  {result.duration_ms}ms\n")

    if result.details:
        click.echo(f"{Fore.CYAN}📋 Details:")
        for detail in result.details:
            click.echo(f"  {detail}")
        click.echo()

    if result.success:
        click.echo(f"{Fore.GREEN}✅ Synchronization completed successfully!")
    else:
        click.echo(f"{Fore.RED}❌ Synchronization failed!")


def _load_service(config_path: str):
    try:
        return build_service(load_job(config_path), app_config.grist_api)
    except ConfigError as e:
        click.echo(f"{Fore.RED}❌ {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def cli():
    """Grist Sync - Synchronize external records into a Grist table."""
    pass


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=lambda: app_config.job_file,
    show_default="GRIST_SYNC_CONFIG or ./config/grist-sync.json",
    help="Path to the JSON job file",
)
@click.option("--dry-run", is_flag=True, help="Compute the plan without writing")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def sync(config_path, dry_run, verbose):
    """Run one synchronization pass."""
    configure_logging(verbose)
    print_banner()

    service = _load_service(config_path)
    if dry_run:
        service.config = service.config.with_overrides(dry_run=True)

    click.echo(f"{Fore.YELLOW}🔄 Executing synchronization...")
    result = service.sync()
    print_result(result)
    sys.exit(result.exit_code)


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=lambda: app_config.job_file,
    help="Path to the JSON job file",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def test_connections(config_path, verbose):
    """Check the source and the Grist table are reachable."""
    configure_logging(verbose)
    print_banner()

    service = _load_service(config_path)
    results = service.test_connections()

    for name, ok in results.items():
        icon = f"{Fore.GREEN}✅" if ok else f"{Fore.RED}❌"
        click.echo(f"{icon} {name}")

    sys.exit(0 if all(results.values()) else 1)


@cli.command()
@click.argument("url")
def parse_url(url):
    """Show the document id and API URL of a Grist document URL."""
    parsed = parse_grist_url(url)
    if parsed.doc_id is None:
        click.echo(f"{Fore.RED}❌ Not a Grist document URL: {url}")
        sys.exit(1)

    click.echo(f"docId:       {parsed.doc_id}")
    click.echo(f"gristApiUrl: {parsed.api_url}")


if __name__ == "__main__":
    cli()
