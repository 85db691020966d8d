#!/usr/bin/env python3
"""
Portfolio Vulnerability Scanner
Scans a component inventory with ecosystem analyzers and reports new vulnerabilities

CLI usage:
    portfolio-scan --inventory inventory.json --advisories advisories.csv
    portfolio-scan --inventory inventory.json --advisories advisories.csv --analyzer npm-audit
    portfolio-scan --list-analyzers
"""

import logging
import os
import sys
from typing import Optional

import click

from portfolio_scan.analyzers import (
    ANALYZER_RULES,
    build_registry,
    get_analyzer_class,
    get_available_analyzers,
)
from portfolio_scan.core import (
    AssociationTracker,
    NotificationEmitter,
    PortfolioBatchScanner,
    PortfolioScanException,
    ScanAbortedException,
    ScanConfig,
    load_inventory,
)
from portfolio_scan.core.advisory_database import AdvisoryDatabase
from portfolio_scan.core.config import BATCH_SIZE_ENV, DEFAULT_BATCH_SIZE, FAIL_FAST_ENV
from portfolio_scan.core.report_engine import ReportEngine

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def filter_available_analyzers(requested):
    """
    Filter requested analyzers to those that exist, warning about the rest

    Args:
        requested: Analyzer names from the command line

    Returns:
        List of known analyzer names, in request order
    """
    available = get_available_analyzers()
    filtered = []

    for name in requested:
        name = name.strip().lower()
        if name in available:
            if name not in filtered:
                filtered.append(name)
        else:
            click.echo(click.style(
                f"⚠️  Warning: unknown analyzer '{name}'. Skipping.", fg='yellow'), err=True)
            click.echo(click.style(
                f"   Available: {', '.join(available)}", fg='yellow', dim=True), err=True)

    return filtered


@click.command(name="portfolio-scan", help="Scan a component inventory for new vulnerabilities")
@click.option(
    "--inventory",
    "inventory_file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=str),
    default=None,
    help="JSON inventory of components, projects and dependencies",
)
@click.option(
    "--advisories",
    "advisory_files",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=str),
    multiple=True,
    help="Advisory CSV file (repeatable). Headers: vulnerability,ecosystem,name,version",
)
@click.option(
    "--analyzer",
    "analyzer_names",
    type=str,
    multiple=True,
    help="Analyzer to run (repeatable). Default: all analyzers",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=None,
    show_default=f"${BATCH_SIZE_ENV} or {DEFAULT_BATCH_SIZE}",
    help="Components fetched per page",
)
@click.option(
    "--fail-fast",
    is_flag=True,
    help=f"Abort a scan on the first failed batch (also enabled by ${FAIL_FAST_ENV})",
)
@click.option(
    "--output",
    "output_file",
    type=click.Path(writable=True, dir_okay=False, path_type=str),
    default="portfolio_scan_report.json",
    show_default=True,
    help="File to write JSON report",
)
@click.option("--no-save", is_flag=True, help="Do not write JSON report to disk")
@click.option("--list-analyzers", is_flag=True, help="List analyzers and the components they own, then exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(
    inventory_file: Optional[str],
    advisory_files: tuple,
    analyzer_names: tuple,
    batch_size: Optional[int],
    fail_fast: bool,
    output_file: str,
    no_save: bool,
    list_analyzers: bool,
    verbose: bool,
):
    """Portfolio vulnerability scanner CLI"""
    configure_logging(verbose)

    try:
        registry = build_registry()
    except PortfolioScanException as e:
        click.echo(click.style(f"✗ Error: {e}", fg='red', bold=True), err=True)
        sys.exit(EXIT_ERROR)

    if list_analyzers:
        available = get_available_analyzers()
        click.echo(click.style("=" * 80, fg='cyan', bold=True))
        click.echo(click.style("🧩 AVAILABLE ANALYZERS", fg='cyan', bold=True))
        click.echo(click.style("=" * 80, fg='cyan', bold=True))
        for name in available:
            rule = ANALYZER_RULES[name]
            click.echo(f"  • {click.style(name, fg='green', bold=True)}: {rule.describe()}")
        sys.exit(EXIT_OK)

    if not inventory_file or not advisory_files:
        click.echo(click.style(
            "✗ Error: --inventory and at least one --advisories file are required",
            fg='red', bold=True), err=True)
        sys.exit(EXIT_ERROR)

    requested = list(analyzer_names) if analyzer_names else get_available_analyzers()
    analyzers_to_run = filter_available_analyzers(requested)
    if not analyzers_to_run:
        click.echo(click.style("✗ Error: No valid analyzers specified", fg='red', bold=True), err=True)
        sys.exit(EXIT_ERROR)

    click.echo(click.style("=" * 80, fg='cyan', bold=True))
    click.echo(click.style("🛡️  Portfolio Vulnerability Scanner", fg='cyan', bold=True))
    click.echo(click.style("=" * 80, fg='cyan', bold=True))
    click.echo(f"\n{click.style('Inventory:', bold=True)} {inventory_file}")
    click.echo(f"{click.style('Analyzers:', bold=True)} {', '.join(analyzers_to_run)}")

    try:
        env_config = ScanConfig.from_env()
        config = ScanConfig(
            batch_size=batch_size or env_config.batch_size,
            fail_fast=fail_fast or env_config.fail_fast,
            fetch_retries=env_config.fetch_retries,
        )
        repository = load_inventory(inventory_file)
        advisories = AdvisoryDatabase()
        for advisory_file in advisory_files:
            advisories.load_csv(advisory_file)
    except PortfolioScanException as e:
        click.echo(click.style(f"✗ Error: {e}", fg='red', bold=True), err=True)
        sys.exit(EXIT_ERROR)

    click.echo(click.style(
        f"✓ {repository.count()} component(s), {advisories.get_advisory_count()} advisories loaded",
        fg='green', bold=True))

    report_engine = ReportEngine()
    tracker = AssociationTracker(repository, repository)
    emitter = NotificationEmitter(report_engine)
    scanner = PortfolioBatchScanner(repository, config)

    aborted = False
    for name in analyzers_to_run:
        analyzer = get_analyzer_class(name)(registry, tracker, emitter, advisories)
        try:
            summary = scanner.run_full_scan(analyzer.analyze_batch)
        except ScanAbortedException as e:
            click.echo(click.style(f"✗ {name}: {e}", fg='red', bold=True), err=True)
            summary = e.summary
            aborted = True
        report_engine.set_summary(name, summary)
        logger.debug(f"{name}: analyzed {analyzer.components_analyzed} component(s), "
                     f"{analyzer.findings} finding(s), {analyzer.notifications} notification(s)")

    report_engine.print_report()

    if not no_save:
        absolute_output = os.path.abspath(output_file)
        if report_engine.save_report(absolute_output):
            click.echo(click.style(f"✓ Report saved to: {absolute_output}", fg='green', bold=True))

    if aborted or report_engine.get_failed_batch_count() > 0:
        sys.exit(EXIT_PARTIAL)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    cli()
