"""Duplication routes.

Both endpoints are GETs for compatibility with existing mashups and
launchers, even though they create an app.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from api.deps import get_workflow
from api.schemas import DuplicationOut, ErrorOut
from duplicator.core.workflow import DuplicationWorkflow
from duplicator.models.duplication import DONE_MESSAGE, DuplicationRequest, ScriptMode

router = APIRouter(tags=["duplicate"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    409: {"model": ErrorOut},
    502: {"model": ErrorOut},
    504: {"model": ErrorOut},
}


async def _duplicate(
    workflow: DuplicationWorkflow,
    mode: ScriptMode,
    template_app_id: str | None,
    app_name: str | None,
    owner_user_id: str | None,
) -> DuplicationOut:
    request = DuplicationRequest.from_params(template_app_id, app_name, owner_user_id, mode)
    logger.info(
        "Duplicating %s as '%s' for %s (%s script)",
        request.template_app_id,
        request.app_name,
        request.owner_user_id,
        mode.value,
    )
    result = await workflow.run(request)
    return DuplicationOut(result=DONE_MESSAGE, new_app_id=result.new_app_id)


@router.get("/duplicateNewScript", response_model=DuplicationOut, responses=_ERROR_RESPONSES)
async def duplicate_new_script(
    template_app_id: str | None = Query(default=None, alias="templateAppId"),
    app_name: str | None = Query(default=None, alias="appName"),
    owner_user_id: str | None = Query(default=None, alias="ownerUserId"),
    workflow: DuplicationWorkflow = Depends(get_workflow),
) -> DuplicationOut:
    """Copy a template app and replace its load script with the canonical one."""
    return await _duplicate(
        workflow, ScriptMode.REPLACE_SCRIPT, template_app_id, app_name, owner_user_id
    )


@router.get("/duplicateKeepScript", response_model=DuplicationOut, responses=_ERROR_RESPONSES)
async def duplicate_keep_script(
    template_app_id: str | None = Query(default=None, alias="templateAppId"),
    app_name: str | None = Query(default=None, alias="appName"),
    owner_user_id: str | None = Query(default=None, alias="ownerUserId"),
    workflow: DuplicationWorkflow = Depends(get_workflow),
) -> DuplicationOut:
    """Copy a template app, keeping the template's load script."""
    return await _duplicate(workflow, ScriptMode.KEEP_SCRIPT, template_app_id, app_name, owner_user_id)
