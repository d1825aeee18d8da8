"""HTTP auth backend routes for brokers that delegate auth over HTTP."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from topic_authz._decision import Decision
from topic_authz._engine import AuthzEngine
from topic_authz.integrations.fastapi._models import AclCheckRequest, AuthResponse, UserCheckRequest

__all__ = ["create_broker_router"]


def _respond(decision: Decision, *, expose_reason: bool) -> JSONResponse:
    body = AuthResponse(ok=decision.allowed, reason=decision.reason if expose_reason else "")
    return JSONResponse(status_code=200 if decision else 403, content=body.model_dump())


def create_broker_router(
    engine: AuthzEngine,
    *,
    prefix: str = "",
    expose_reason: bool = False,
) -> APIRouter:
    """Build the ``/user`` and ``/acl`` endpoints over *engine*.

    Allow answers ``200 {"ok": true}``; Deny answers ``403 {"ok": false}``.
    Malformed requests (missing fields, an ``acc`` outside 1..7) are
    protocol faults and are rejected by validation with ``422``.

    The engine is synchronous and may block up to its timeout, so calls are
    dispatched to the thread pool.

    Args:
        engine: The engine answering the checks.
        prefix: Optional path prefix (e.g. ``"/mqtt"``).
        expose_reason: Include the internal deny reason in responses.
            Leave off in production; reasons reveal whether a user exists.

    Example::

        app = FastAPI()
        app.include_router(create_broker_router(engine, prefix="/mqtt"))
    """
    router = APIRouter(prefix=prefix, tags=["broker-auth"])

    @router.post("/user", response_model=AuthResponse)
    async def check_user(body: UserCheckRequest) -> JSONResponse:
        decision = await run_in_threadpool(
            engine.authenticate, body.username, body.password, body.clientid
        )
        return _respond(decision, expose_reason=expose_reason)

    @router.post("/acl", response_model=AuthResponse)
    async def check_acl(body: AclCheckRequest) -> JSONResponse:
        decision = await run_in_threadpool(
            engine.authorize, body.username, body.clientid, body.address, body.topic, body.acc
        )
        return _respond(decision, expose_reason=expose_reason)

    return router
