"""Root CLI app - entry point and command registration."""

from pathlib import Path

import structlog
import typer

from moveengine.config import get_settings
from moveengine.config.settings import configure_logging
from moveengine.errors import ConfigError

log = structlog.get_logger(__name__)

app = typer.Typer(
    name="moves",
    help="Move Engine - track prediction-market probabilities and surface the biggest moves per window.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Load and validate settings, configure logging and store them in context."""
    try:
        settings = get_settings(profile, config_dir).validate()
    except ConfigError as e:
        log.error("run_failed", category=e.category, error=str(e))
        raise typer.Exit(1) from e
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from moveengine.cli import api_cmd, markets, moves_cmd, run  # noqa: E402

app.command("run")(run.run)
app.command("compute")(run.compute)
app.command("top")(moves_cmd.top)
app.add_typer(markets.app, name="markets")
app.add_typer(api_cmd.app, name="api")


def run_cli() -> None:
    app()


if __name__ == "__main__":
    run_cli()
