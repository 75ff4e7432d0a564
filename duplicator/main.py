from pathlib import Path

import click

from duplicator.core.config import (
    CONFIG_PATH,
    Settings,
    ensure_config_dir,
    load_settings,
    render_default_config,
)
from duplicator.core.console import error, info, report_failure, success
from duplicator.core.exceptions import DuplicatorError


@click.group()
@click.version_option(version="1.1.0", prog_name="sense-app-duplicator")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: {CONFIG_PATH})",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """sense-app-duplicator: duplicate Qlik Sense template apps over HTTPS."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def settings_from_context(ctx: click.Context) -> Settings:
    """Load settings for a command, exiting with a message on bad config."""
    try:
        return load_settings(ctx.obj.get("config_path"))
    except DuplicatorError as exc:
        report_failure(exc)
        raise SystemExit(1)


@cli.command()
def init() -> None:
    """Create the config directory and a starter config.yaml."""
    config_dir = ensure_config_dir()
    config_path = config_dir / "config.yaml"
    if config_path.exists():
        info(f"Config already present at {config_path}")
        return
    config_path.write_text(render_default_config())
    success(f"Initialized sense-app-duplicator at {config_dir}")


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the HTTPS API server."""
    import uvicorn

    from api.main import create_app
    from duplicator.core.tls import server_tls_files

    settings = settings_from_context(ctx)
    try:
        certfile, keyfile = server_tls_files(settings)
    except DuplicatorError as exc:
        error(exc.message)
        raise SystemExit(1)
    info(f"Listening on https://{settings.listen_host}:{settings.listen_port}")
    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=settings.listen_port,
        ssl_certfile=certfile,
        ssl_keyfile=keyfile,
        log_config=None,
    )


# Register command groups
from duplicator.commands.template import template  # noqa: E402

cli.add_command(template)

if __name__ == "__main__":
    cli()
