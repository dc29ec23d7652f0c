"""
kube-health-monitor - CLI Interface

Command-line entry point for cron-driven health sweeps.
"""

import logging
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DEFAULT_CONFIG_PATH, MonitorConfig, load_config
from .errors import MonitorError
from .monitor import RunReport, run_once


console = Console()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )
    # The kubernetes client is chatty at DEBUG
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(version=__version__)
def cli():
    """kube-health-monitor - Email owners of unhealthy Kubernetes deployments."""
    pass


@cli.command()
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Path to config file")
@click.option("--dry-run", is_flag=True, help="Dry run without sending emails")
@click.option("--kubeconfig", help="Path to kubeconfig (default: in-cluster, then ~/.kube/config)")
@click.option("--mock", is_flag=True, help="Run against a simulated cluster")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def run(config_path: str, dry_run: bool, kubeconfig: Optional[str], mock: bool, verbose: bool):
    """Run one health check sweep and notify owners."""
    setup_logging(verbose)

    try:
        config = load_config(config_path)

        if mock:
            from .mock import RecordingNotifier, demo_cluster
            reader = demo_cluster()
            notifier = RecordingNotifier()
        else:
            from .cluster import KubernetesClusterReader
            from .notifications import EmailNotifier
            reader = KubernetesClusterReader(kubeconfig_path=kubeconfig)
            notifier = EmailNotifier(
                config.smtp,
                ops_mailbox=config.ops_mailbox,
                tail_lines=config.log_tail_lines,
            )

        report = run_once(config, reader, notifier=notifier, dry_run=dry_run)

    except MonitorError as e:
        console.print(f"[red]Fatal: {escape(str(e))}[/red]")
        raise SystemExit(1)

    print_report(report)


@cli.command("check-config")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Path to config file")
def check_config(config_path: str):
    """Validate a config file and print the effective settings."""
    try:
        config = load_config(config_path)
    except MonitorError as e:
        console.print(f"[red]Invalid config: {escape(str(e))}[/red]")
        raise SystemExit(1)

    print_config(config)


def print_report(report: RunReport) -> None:
    result = report.sweep

    if result.failed:
        table = Table(title="Unhealthy Services")
        table.add_column("Deployment", style="cyan", no_wrap=True)
        table.add_column("Owner")
        table.add_column("Reason", style="red")
        table.add_column("Notified")

        sent = {d.workload.key: d.success for d in report.deliveries}
        for record in result.failed:
            key = record.workload.key
            if result.dry_run:
                notified = "dry run"
            elif sent.get(key):
                notified = "[green]yes[/green]"
            else:
                notified = "[red]no[/red]"
            table.add_row(key, record.workload.owner_email, escape(record.failure_reason), notified)

        console.print(table)

    console.print(
        f"{result.summary()} "
        f"[dim]({result.evaluated} evaluated, {result.errors} errors, "
        f"{result.duration_ms:.0f}ms)[/dim]"
    )
    if report.delivery_failures:
        console.print(f"[yellow]{report.delivery_failures} notifications failed[/yellow]")


def print_config(config: MonitorConfig) -> None:
    table = Table(title="Effective Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("smtp", f"{config.smtp.address} (no_auth={config.smtp.no_auth})")
    table.add_row("from", config.smtp.sender or "(not set)")
    table.add_row("excluded_namespaces", ", ".join(sorted(config.excluded_namespaces)) or "(none)")
    table.add_row("log_tail_lines", str(config.log_tail_lines))
    table.add_row("crash_loop_threshold", str(config.crash_loop_threshold))
    table.add_row("send_delay_seconds", str(config.send_delay_seconds))
    table.add_row("ops_mailbox", config.ops_mailbox)
    table.add_row("sweep_timeout_seconds", str(config.sweep_timeout_seconds or "(none)"))

    console.print(table)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
