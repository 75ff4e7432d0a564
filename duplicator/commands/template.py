"""List and duplicate template apps from the shell."""

from __future__ import annotations

import asyncio

import click

from duplicator.core.config import Settings
from duplicator.core.console import print_templates, report_failure, status_spinner, success
from duplicator.core.exceptions import DuplicatorError
from duplicator.core.logging import configure_logging
from duplicator.core.services import open_services
from duplicator.models.app import TemplateApp
from duplicator.models.duplication import DuplicationRequest, DuplicationResult, ScriptMode


async def _list_templates(settings: Settings) -> list[TemplateApp]:
    async with open_services(settings) as services:
        return await services.repository.list_template_apps(services.service_identity)


async def _duplicate(settings: Settings, request: DuplicationRequest) -> DuplicationResult:
    async with open_services(settings) as services:
        return await services.workflow.run(request)


@click.group()
def template() -> None:
    """Inspect and duplicate template apps."""


@template.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List apps flagged AppIsTemplate=Yes."""
    from duplicator.main import settings_from_context

    settings = settings_from_context(ctx)
    configure_logging(settings.log_directory, settings.default_log_level)
    try:
        with status_spinner("Fetching template apps"):
            apps = asyncio.run(_list_templates(settings))
    except DuplicatorError as exc:
        report_failure(exc)
        raise SystemExit(1)
    print_templates(apps)


@template.command("duplicate")
@click.option("--template-id", required=True, help="ID of the template app to copy")
@click.option("--name", "app_name", required=True, help="Name of the new app")
@click.option("--owner", "owner_user_id", required=True, help="User ID that will own the new app")
@click.option(
    "--keep-script",
    is_flag=True,
    default=False,
    help="Keep the template's load script instead of installing the canonical one",
)
@click.pass_context
def duplicate(
    ctx: click.Context, template_id: str, app_name: str, owner_user_id: str, keep_script: bool
) -> None:
    """Copy a template app and prepare it in the engine."""
    from duplicator.main import settings_from_context

    settings = settings_from_context(ctx)
    configure_logging(settings.log_directory, settings.default_log_level)
    mode = ScriptMode.KEEP_SCRIPT if keep_script else ScriptMode.REPLACE_SCRIPT
    try:
        request = DuplicationRequest.from_params(template_id, app_name, owner_user_id, mode)
        with status_spinner(f"Duplicating {template_id}"):
            result = asyncio.run(_duplicate(settings, request))
    except DuplicatorError as exc:
        report_failure(exc)
        raise SystemExit(1)
    success(f"Created app '{app_name}' (id={result.new_app_id})")
