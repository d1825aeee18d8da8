"""Tests for the FastAPI import guard."""

from __future__ import annotations

import importlib
import sys
from unittest import mock

import pytest


class TestImportGuard:
    def test_import_error_without_fastapi(self) -> None:
        """Importing the integration without fastapi raises ImportError."""
        with mock.patch.dict(sys.modules, {"fastapi": None}):
            # Clear cached integration modules so they re-import
            cached = [k for k in sys.modules if k.startswith("topic_authz.integrations.fastapi")]
            for mod in cached:
                sys.modules.pop(mod)

            with pytest.raises(ImportError) as info:
                importlib.import_module("topic_authz.integrations.fastapi")

        message = str(info.value).lower()
        assert "fastapi" in message
        assert "pip install topic-authz[fastapi]" in message

    def test_import_succeeds_with_fastapi(self) -> None:
        """Importing the integration with fastapi works fine."""
        from topic_authz.integrations.fastapi import (
            AclCheckRequest,
            AuthResponse,
            UserCheckRequest,
            create_broker_router,
        )

        assert callable(create_broker_router)
        for model in (AclCheckRequest, AuthResponse, UserCheckRequest):
            assert model is not None
