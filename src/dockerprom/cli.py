"""CLI for dockerprom.

Simple Prometheus exporter for Docker container metrics. No Docker socket
access or special privilege is required: metrics are read from the cgroupfs
(/sys/fs/cgroup/ by default) and container metadata from the Docker
containers directory (/var/lib/docker/containers/ by default).

Commands:
- serve: run the HTTP metrics endpoint
- scrape: collect once and print the metrics to stdout

Most options can also be set through environment variables. Some, such as
basicauth credentials, should preferably be configured that way.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dockerprom.core.config import check_read_dir, load_config_data
from dockerprom.core.errors import DetectionError
from dockerprom.core.schemas import CgroupDriver, CgroupVersion, ExporterConfig
from dockerprom.exporter import ContainerMetricsExporter
from dockerprom.server import serve as serve_metrics
from dockerprom.utils.logging import setup_logging, verbosity_to_level

app = typer.Typer(
    name="dockerprom",
    help="Simple Prometheus exporter for Docker container metrics.",
    add_completion=False,
)

console = Console(stderr=True)

ConfigOption = typer.Option(
    None, "--config", help="YAML/JSON configuration file; command-line options override it"
)
ContainersDirOption = typer.Option(
    None, "--containers-dir", "-d", envvar="CONTAINERS_DIR",
    help="Path to the Docker 'containers' directory (default: /var/lib/docker/containers/)",
)
CgroupfsDirOption = typer.Option(
    None, "--cgroupfs-dir", "-c", envvar="CGROUPFS_DIR",
    help="Path to the cgroupfs (default: /sys/fs/cgroup/)",
)
MinRefreshOption = typer.Option(
    None, "--min-metadata-refresh-ms", envvar="MIN_METADATA_REFRESH_MS",
    help="Minimum milliseconds between container metadata refreshes. 0 = always refresh "
    "(default: 2000)",
)
CgroupVersionOption = typer.Option(
    None, "--cgroup-version", envvar="CGROUP_VERSION", help="Override cgroup version detection"
)
CgroupDriverOption = typer.Option(
    None, "--docker-cgroup-driver", envvar="DOCKER_CGROUP_DRIVER",
    help="Override Docker cgroup driver detection",
)
ExcludeLabelsOption = typer.Option(
    None, "--exclude-labels", envvar="EXCLUDE_LABELS",
    help="Container labels to leave off metrics. Repeat or separate with commas",
)
IncludeLabelsOption = typer.Option(
    None, "--include-labels", envvar="INCLUDE_LABELS",
    help="Only these container labels are copied to metrics. Cannot be combined with "
    "--exclude-labels",
)
VerboseOption = typer.Option(
    0, "--verbose", "-v", count=True,
    help="Increase the log level (default is INFO, one is DEBUG, two is TRACE)",
)
LogFileOption = typer.Option(None, "--log-file", help="Write logs to file in addition to console")
JsonLogsOption = typer.Option(False, "--json-logs", help="Output logs in JSON format")


def _configure_logging(verbose: int, log_file: Path | None, json_logs: bool) -> None:
    try:
        level = verbosity_to_level(verbose)
    except ValueError as e:
        console.print(f"[bold red]Error: {escape(str(e))}. Quitting.[/]")
        raise typer.Exit(1) from e
    setup_logging(level=level, log_file=log_file, json_format=json_logs, rich_console=not json_logs)


def _build_config(config_file: Path | None, **overrides: Any) -> ExporterConfig:
    """Merge the optional config file with options given on the command line."""
    data: dict[str, Any] = {}
    try:
        if config_file is not None:
            data = load_config_data(config_file)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ExporterConfig.model_validate(data)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[bold red]ERROR: Invalid configuration: {escape(str(e))}[/]")
        raise typer.Exit(1) from e


def _start_exporter(config: ExporterConfig) -> ContainerMetricsExporter:
    """Check the input directories and run the exporter startup phase."""
    try:
        check_read_dir(config.containers_dir, "containers")
        check_read_dir(config.cgroupfs_dir, "cgroupfs")
        return ContainerMetricsExporter.from_config(config)
    except OSError as e:
        console.print(f"[bold red]FATAL ERROR: {escape(str(e))}[/]")
        console.print(
            "If you're running this tool within a container, maybe check your volume mounts."
        )
        raise typer.Exit(e.errno or 1) from e
    except DetectionError as e:
        console.print(f"[bold red]FATAL ERROR: {escape(str(e))}[/]")
        raise typer.Exit(1) from e


@app.command()
def serve(
    config_file: Path | None = ConfigOption,
    containers_dir: Path | None = ContainersDirOption,
    cgroupfs_dir: Path | None = CgroupfsDirOption,
    listen_addr: str | None = typer.Option(
        None, "--listen-addr", "-l", envvar="LISTEN_ADDR",
        help="IP and port to bind the HTTP server to. Use [::]:3000 to listen on all addresses "
        "(default: 127.0.0.1:3000)",
    ),
    min_metadata_refresh_ms: int | None = MinRefreshOption,
    basicauth: str | None = typer.Option(
        None, "--basicauth", "-B", envvar="BASICAUTH",
        help="HTTP Basic auth credentials as username:password (not base64 encoded)",
    ),
    cgroup_version: CgroupVersion | None = CgroupVersionOption,
    docker_cgroup_driver: CgroupDriver | None = CgroupDriverOption,
    exclude_labels: list[str] | None = ExcludeLabelsOption,
    include_labels: list[str] | None = IncludeLabelsOption,
    verbose: int = VerboseOption,
    log_file: Path | None = LogFileOption,
    json_logs: bool = JsonLogsOption,
) -> None:
    """Serve container metrics over HTTP."""
    _configure_logging(verbose, log_file, json_logs)
    config = _build_config(
        config_file,
        containers_dir=containers_dir,
        cgroupfs_dir=cgroupfs_dir,
        listen_addr=listen_addr,
        min_metadata_refresh_ms=min_metadata_refresh_ms,
        basicauth=basicauth,
        cgroup_version=cgroup_version,
        docker_cgroup_driver=docker_cgroup_driver,
        exclude_labels=exclude_labels or None,
        include_labels=include_labels or None,
    )

    exporter = _start_exporter(config)
    _show_config_summary(config, exporter)

    try:
        serve_metrics(exporter, config.listen_host, config.listen_port, config.basicauth_header)
    except OSError as e:
        console.print(
            f"[bold red]FATAL ERROR: Unable to listen on {config.listen_addr}: {escape(str(e))}[/]"
        )
        raise typer.Exit(e.errno or 1) from e


@app.command()
def scrape(
    config_file: Path | None = ConfigOption,
    containers_dir: Path | None = ContainersDirOption,
    cgroupfs_dir: Path | None = CgroupfsDirOption,
    min_metadata_refresh_ms: int | None = MinRefreshOption,
    cgroup_version: CgroupVersion | None = CgroupVersionOption,
    docker_cgroup_driver: CgroupDriver | None = CgroupDriverOption,
    exclude_labels: list[str] | None = ExcludeLabelsOption,
    include_labels: list[str] | None = IncludeLabelsOption,
    verbose: int = VerboseOption,
    log_file: Path | None = LogFileOption,
    json_logs: bool = JsonLogsOption,
) -> None:
    """Collect metrics once and print them to stdout."""
    _configure_logging(verbose, log_file, json_logs)
    config = _build_config(
        config_file,
        containers_dir=containers_dir,
        cgroupfs_dir=cgroupfs_dir,
        min_metadata_refresh_ms=min_metadata_refresh_ms,
        cgroup_version=cgroup_version,
        docker_cgroup_driver=docker_cgroup_driver,
        exclude_labels=exclude_labels or None,
        include_labels=include_labels or None,
    )

    exporter = _start_exporter(config)
    try:
        output = exporter.collect_metrics()
    except Exception as e:
        console.print(f"[bold red]Failed getting metrics: {escape(str(e))}[/]")
        raise typer.Exit(1) from e
    typer.echo(output, nl=False)


def _show_config_summary(config: ExporterConfig, exporter: ContainerMetricsExporter) -> None:
    """Display a summary of the resolved configuration."""
    table = Table(title="dockerprom")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Containers Dir", str(config.containers_dir))
    table.add_row("cgroupfs Dir", str(config.cgroupfs_dir))
    table.add_row("cgroup Version", exporter.layout.version.value)
    table.add_row("Docker cgroup Driver", exporter.layout.driver.value)
    table.add_row("Listen Address", config.listen_addr)
    table.add_row(
        "Metadata Refresh",
        f"{config.min_metadata_refresh_ms} ms" if config.min_metadata_refresh_ms else "always",
    )
    table.add_row("Known Containers", str(len(exporter.cache)))
    if config.include_labels:
        table.add_row("Including Labels", ", ".join(config.include_labels))
    if config.exclude_labels:
        table.add_row("Excluding Labels", ", ".join(config.exclude_labels))
    table.add_row("Basic Auth", "required" if config.basicauth else "off")

    console.print(table)


if __name__ == "__main__":
    app()
