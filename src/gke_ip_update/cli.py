"""CLI entry point for gke-ip-update."""

from pathlib import Path

import click

from gke_ip_update import __version__
from gke_ip_update.config import Config, load_config
from gke_ip_update.errors import GkeIpUpdateError
from gke_ip_update.logging import setup_logging
from gke_ip_update.storage import IpStateStore


def cluster_options(func):
    """Options shared by the commands that talk to the cluster."""
    options = [
        click.option(
            "--service-account",
            "service_account",
            default=None,
            help="Path to the service account key for GOOGLE_APPLICATION_CREDENTIALS.",
        ),
        click.option("--project", default=None, help="Project ID."),
        click.option("--cluster", default=None, help="Cluster ID."),
        click.option("--zone", default=None, help="Zone where the master lives."),
        click.option(
            "--network_name",
            "network_name",
            default=None,
            help="Display name for the master authorized network.",
        ),
        click.option(
            "--interval",
            type=float,
            default=None,
            help="Seconds between IP checks.",
        ),
        click.option(
            "--state-dir",
            "state_dir",
            default=None,
            help="Directory holding ip.txt and the log file.",
        ),
        click.option("--log-level", "log_level", default=None, help="Logging level."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(ctx: click.Context, **flags) -> Config:
    """Layer flags over the file config and validate."""
    config: Config = ctx.obj["config"].with_overrides(
        cluster={
            "service_account": flags["service_account"],
            "project": flags["project"],
            "cluster": flags["cluster"],
            "zone": flags["zone"],
            "network_name": flags["network_name"],
        },
        watcher={"check_interval": flags["interval"]},
        state_dir=flags["state_dir"],
        log_level=flags["log_level"],
    )
    try:
        config.validate()
    except GkeIpUpdateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    return config


def _setup_logging(config: Config):
    try:
        return setup_logging(config)
    except GkeIpUpdateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None) -> None:
    """gke-ip-update - Keep GKE master authorized networks in sync with your public IP."""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config)
    except GkeIpUpdateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@main.command()
@cluster_options
@click.pass_context
def run(ctx: click.Context, **flags) -> None:
    """Watch the public IP and update the cluster on change."""
    import asyncio

    from gke_ip_update.agent import Agent, StartupError

    config = _build_config(ctx, **flags)
    logger = _setup_logging(config)

    async def _run() -> bool:
        agent = Agent(config=config)
        try:
            await agent.start()
        except StartupError as e:
            logger.error(f"Startup error: {e}")
            click.echo(f"Startup error: {e}", err=True)
            raise SystemExit(1)

        click.echo(
            f"Watching public IP every {config.watcher.check_interval:g}s "
            f"for cluster {config.cluster.cluster}"
        )
        click.echo("Press Ctrl+C to stop")
        return await agent.run_forever()

    try:
        clean = asyncio.run(_run())
    except KeyboardInterrupt:
        click.echo("\nShutting down...")
        return

    if not clean:
        click.echo("Error: public IP lookup failed, watcher stopped", err=True)
        raise SystemExit(1)


@main.command()
@cluster_options
@click.pass_context
def check(ctx: click.Context, **flags) -> None:
    """Check the public IP once and update the cluster if it changed."""
    import asyncio

    from gke_ip_update.agent import Agent

    config = _build_config(ctx, **flags)
    _setup_logging(config)

    try:
        changed = asyncio.run(Agent(config=config).check_once())
    except GkeIpUpdateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if changed:
        click.echo("IP change detected")
    else:
        click.echo("IP unchanged")


@main.command()
@click.option("--state-dir", "state_dir", default=None, help="State directory.")
@click.pass_context
def status(ctx: click.Context, state_dir: str | None) -> None:
    """Show the last observed public IP."""
    config: Config = ctx.obj["config"].with_overrides(state_dir=state_dir)
    store = IpStateStore(config.state_path)

    try:
        ip = store.load()
    except GkeIpUpdateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if ip is None:
        click.echo("No IP recorded yet")
    else:
        click.echo(f"Last observed IP: {ip}")


@main.command()
def version() -> None:
    """Show version."""
    click.echo(f"gke-ip-update version {__version__}")
