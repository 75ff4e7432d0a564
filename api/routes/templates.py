"""Template app listing route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.deps import get_repository, get_service_identity
from api.schemas import ErrorOut, TemplateAppOut
from duplicator.core.exceptions import UpstreamError
from duplicator.core.repository import RepositoryClient
from duplicator.models.identity import IdentityContext

router = APIRouter(tags=["templates"])
logger = logging.getLogger(__name__)


@router.get(
    "/getTemplateList",
    response_model=list[TemplateAppOut],
    responses={502: {"model": ErrorOut}},
)
async def get_template_list(
    repository: RepositoryClient = Depends(get_repository),
    identity: IdentityContext = Depends(get_service_identity),
) -> list[TemplateAppOut] | JSONResponse:
    """List apps flagged AppIsTemplate=Yes."""
    try:
        apps = await repository.list_template_apps(identity)
    except UpstreamError as exc:
        # Pass the repository's own HTTP error status through to the caller
        if exc.upstream_status is None or exc.upstream_status < 400:
            raise
        logger.error("Get templates: %s", exc)
        return JSONResponse(status_code=exc.upstream_status, content=exc.to_dict())
    logger.info("Done getting list of template apps")
    return [TemplateAppOut(**app.summary()) for app in apps]
