"""Request and response bodies of the HTTP auth backend."""

from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = ["AclCheckRequest", "AuthResponse", "UserCheckRequest"]


class UserCheckRequest(BaseModel):
    """Connection-time credential check sent by the broker."""

    username: str = Field(..., description="MQTT username")
    password: str = Field(..., description="MQTT password")
    clientid: str = Field(default="", description="MQTT client ID")


class AclCheckRequest(BaseModel):
    """Per-operation ACL check sent by the broker."""

    username: str = Field(..., description="MQTT username")
    clientid: str = Field(default="", description="MQTT client ID")
    topic: str = Field(..., description="MQTT topic")
    acc: int = Field(..., ge=1, le=7, description="Access bitmask (1=read, 2=write, 4=subscribe)")
    address: str = Field(default="", description="Client source address, if known")


class AuthResponse(BaseModel):
    """Verdict returned to the broker."""

    ok: bool = Field(..., description="Whether the action is allowed")
    reason: str = Field(default="", description="Human-readable reason")
