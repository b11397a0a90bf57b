from __future__ import annotations

import secrets

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from cer import db
from cer.api_models import ContainerOut, EventOut, HealthResponse
from cer.registry import ContainerRegistry
from cer.settings import settings


security = HTTPBasic(auto_error=False)


def get_current_username(credentials: HTTPBasicCredentials | None = Depends(security)) -> str | None:
    # Auth is off unless a password is configured.
    if not settings.api_password:
        return None
    if credentials is None or not (
        secrets.compare_digest(credentials.username, settings.api_user)
        and secrets.compare_digest(credentials.password, settings.api_password)
    ):
        raise HTTPException(status_code=401, detail="Invalid credentials", headers={"WWW-Authenticate": "Basic"})
    return credentials.username


def create_app(registry: ContainerRegistry) -> FastAPI:
    app = FastAPI(title="Container Event Reconciler")
    app.state.registry = registry

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(containers=len(registry))

    @app.get("/containers", response_model=list[ContainerOut])
    def list_containers(app_name: str | None = Query(None, alias="app"), _user: str | None = Depends(get_current_username)):
        snaps = registry.snapshots()
        if app_name:
            snaps = [s for s in snaps if s.app_name == app_name]
        snaps.sort(key=lambda s: (s.app_name or "", s.id))
        return [ContainerOut.from_snapshot(s) for s in snaps]

    @app.get("/containers/{container_id}", response_model=ContainerOut)
    def get_container(container_id: str, _user: str | None = Depends(get_current_username)):
        matches = registry.find(container_id)
        if not matches:
            raise HTTPException(status_code=404, detail=f"No registered container matches '{container_id}'")
        if len(matches) > 1:
            raise HTTPException(status_code=409, detail=f"'{container_id}' matches {len(matches)} containers")
        return ContainerOut.from_snapshot(matches[0])

    @app.get("/events", response_model=list[EventOut])
    def events(
        limit: int = Query(50, ge=1, le=1000),
        app_name: str | None = Query(None, alias="app"),
        container_id: str | None = Query(None),
        _user: str | None = Depends(get_current_username),
    ):
        return db.latest_events(limit=limit, container_id=container_id, app=app_name)

    return app


# `uvicorn main:app` serves an empty registry; `cli.py watch` serves the live one.
app = create_app(ContainerRegistry())
