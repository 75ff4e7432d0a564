"""FastAPI dependencies resolving the process-wide services."""

from fastapi import Request

from duplicator.core.repository import RepositoryClient
from duplicator.core.workflow import DuplicationWorkflow
from duplicator.models.identity import IdentityContext


def get_workflow(request: Request) -> DuplicationWorkflow:
    workflow: DuplicationWorkflow = request.app.state.services.workflow
    return workflow


def get_repository(request: Request) -> RepositoryClient:
    repository: RepositoryClient = request.app.state.services.repository
    return repository


def get_service_identity(request: Request) -> IdentityContext:
    identity: IdentityContext = request.app.state.services.service_identity
    return identity
