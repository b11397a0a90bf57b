from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .docker_ops import ContainerSnapshot


class HealthResponse(BaseModel):
    status: str = "healthy"
    containers: int = Field(..., ge=0, description="Registered containers")


class ContainerOut(BaseModel):
    id: str
    short_id: str
    app: str
    network_address: str | None = None
    restart_policy: str
    max_retries: int = Field(..., ge=0)
    restart_count: int = Field(..., ge=0)

    @classmethod
    def from_snapshot(cls, snap: ContainerSnapshot) -> "ContainerOut":
        return cls(
            id=snap.id,
            short_id=snap.short_id,
            app=snap.app_name or "",
            network_address=snap.network_address,
            restart_policy=snap.restart_policy_name,
            max_retries=snap.restart_policy_max_retries,
            restart_count=snap.restart_count,
        )


class EventOut(BaseModel):
    id: int
    ts: str
    level: str
    message: str
    container_id: str | None = None
    app: str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
