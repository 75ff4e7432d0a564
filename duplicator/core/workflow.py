"""Template app duplication workflow.

A run validates that the source app is a template, copies it through the
repository, then drives one engine session on the copy: open it, optionally
replace the load script, optionally reload, and always close the session.
Failures after the copy carry the new app id so callers can report the
orphaned app.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from duplicator.core.engine import EngineSession
from duplicator.core.exceptions import DuplicatorError, EngineError, NotATemplateError
from duplicator.core.logging import VERBOSE
from duplicator.core.repository import RepositoryClient
from duplicator.core.script_source import ScriptSource
from duplicator.models.duplication import DuplicationRequest, DuplicationResult, ScriptMode
from duplicator.models.identity import IdentityContext

EngineFactory = Callable[[], EngineSession]
Step = tuple[str, Callable[[], Awaitable[None]]]


class DuplicationWorkflow:
    def __init__(
        self,
        repository: RepositoryClient,
        engine_factory: EngineFactory,
        script_source: ScriptSource,
        *,
        owner_user_directory: str,
        engine_identity: IdentityContext,
        reload_new_app: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.engine_factory = engine_factory
        self.script_source = script_source
        self.owner_user_directory = owner_user_directory
        self.engine_identity = engine_identity
        self.reload_new_app = reload_new_app
        self.logger = logger or logging.getLogger(__name__)

    async def run_replace_script(self, request: DuplicationRequest) -> DuplicationResult:
        """Duplicate and install the canonical load script in the copy."""
        return await self._run(request, replace_script=True)

    async def run_keep_script(self, request: DuplicationRequest) -> DuplicationResult:
        """Duplicate and keep the template's own load script."""
        return await self._run(request, replace_script=False)

    async def run(self, request: DuplicationRequest) -> DuplicationResult:
        if request.script_mode is ScriptMode.REPLACE_SCRIPT:
            return await self.run_replace_script(request)
        return await self.run_keep_script(request)

    # ── Steps ────────────────────────────────────────────────────

    async def _run(self, request: DuplicationRequest, *, replace_script: bool) -> DuplicationResult:
        owner = IdentityContext(self.owner_user_directory, request.owner_user_id)

        await self._validate_template(request, owner)
        script = await self.script_source.fetch() if replace_script else None

        new_app_id = await self.repository.copy_app(request.template_app_id, request.app_name, owner)
        try:
            await self._engine_phase(request, new_app_id, script)
        except DuplicatorError as exc:
            exc.new_app_id = new_app_id
            self._log_failure(request, new_app_id, exc)
            raise
        except Exception as exc:
            wrapped = EngineError(f"Unexpected engine failure: {exc}", new_app_id=new_app_id)
            self._log_failure(request, new_app_id, wrapped)
            raise wrapped from exc

        self.logger.info("%s: Done duplicating, new app id=%s", request.app_name, new_app_id)
        return DuplicationResult(new_app_id=new_app_id)

    def _log_failure(self, request: DuplicationRequest, new_app_id: str, exc: DuplicatorError) -> None:
        self.logger.error(
            "%s: duplication of %s failed after creating app %s: %s",
            request.app_name,
            request.template_app_id,
            new_app_id,
            exc,
        )

    async def _validate_template(self, request: DuplicationRequest, owner: IdentityContext) -> None:
        self.logger.log(VERBOSE, "%s: testing if app is a template", request.template_app_id)
        app = await self.repository.get_app(request.template_app_id, owner)
        self.logger.log(VERBOSE, "%s: app is template: %s", request.template_app_id, app.is_template)
        if not app.is_template:
            raise NotATemplateError("The provided app ID does not belong to a template app.")

    def _engine_steps(self, session: EngineSession, new_app_id: str, script: str | None) -> list[Step]:
        steps: list[Step] = [
            ("connect to engine", lambda: session.connect(self.engine_identity)),
            ("open app", lambda: session.open_app(new_app_id)),
        ]
        if script is not None:
            steps.append(("set load script", lambda: session.set_script(script)))
        if self.reload_new_app:
            steps.append(("reload app", session.reload))
        return steps

    async def _engine_phase(self, request: DuplicationRequest, new_app_id: str, script: str | None) -> None:
        session = self.engine_factory()
        failed = False
        try:
            for label, step in self._engine_steps(session, new_app_id, script):
                self.logger.log(VERBOSE, "%s: %s", request.app_name, label)
                await step()
            if not self.reload_new_app:
                self.logger.log(VERBOSE, "%s: app reloading disabled - skipping", request.app_name)
        except BaseException:
            failed = True
            raise
        finally:
            self.logger.log(VERBOSE, "%s: close connection to engine", request.app_name)
            try:
                await session.close()
            except DuplicatorError as close_exc:
                if not failed:
                    raise
                self.logger.error("%s: closing engine session failed: %s", request.app_name, close_exc)
