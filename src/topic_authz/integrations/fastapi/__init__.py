"""FastAPI integration for topic-authz."""

from __future__ import annotations

try:
    import fastapi as _fastapi_check  # noqa: F401  # pyright: ignore[reportUnusedImport]

    del _fastapi_check
except ImportError as exc:
    raise ImportError(
        "FastAPI integration requires fastapi. Install it with: pip install topic-authz[fastapi]"
    ) from exc

from topic_authz.integrations.fastapi._models import AclCheckRequest, AuthResponse, UserCheckRequest
from topic_authz.integrations.fastapi._router import create_broker_router

__all__ = [
    "AclCheckRequest",
    "AuthResponse",
    "UserCheckRequest",
    "create_broker_router",
]
