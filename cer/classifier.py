from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .db import log_event
from .dispatcher import Dispatcher
from .docker_ops import DockerInspector, LifecycleEvent
from .errors import InspectError
from .registry import ContainerRegistry


REMOVE_ACTIONS = frozenset({"delete", "destroy"})
START_ACTIONS = frozenset({"start", "restart"})


class Action(str, Enum):
    NOOP = "noop"
    REGISTER = "register"
    DEREGISTER = "deregister"
    REBUILD = "rebuild"
    RELOAD = "reload"


@dataclass(frozen=True)
class Decision:
    action: Action
    container_id: str
    app: str | None = None
    ok: bool = True
    error: str | None = None
    old_address: str | None = None
    new_address: str | None = None


class EventClassifier:
    """Decides what a single lifecycle event means for the registry.

    Runs on the event loop thread; one event is fully handled, including any
    platform command it triggers, before the next one is looked at.
    """

    def __init__(self, registry: ContainerRegistry, inspector: DockerInspector, dispatcher: Dispatcher):
        self.registry = registry
        self.inspector = inspector
        self.dispatcher = dispatcher

    def handle(self, event: LifecycleEvent) -> Decision:
        cid = event.id
        short_id = event.short_id

        if event.action in REMOVE_ACTIONS:
            if self.registry.remove(cid) is None:
                return Decision(Action.NOOP, cid)
            log_event("INFO", "dead_container", container_id=short_id)
            return Decision(Action.DEREGISTER, cid)

        try:
            snap = self.inspector.inspect(cid)
        except InspectError as e:
            log_event(
                "WARN",
                "inspect_failed",
                container_id=short_id,
                name=event.attributes.get("name"),
                action=event.action,
                error=e.detail,
            )
            return Decision(Action.NOOP, cid)

        app = snap.app_name
        if app is None:
            return Decision(Action.NOOP, cid)

        rebuild: Decision | None = None
        if event.action == "die":
            rebuild = self._maybe_rebuild(snap, short_id)

        if event.action not in START_ACTIONS:
            return rebuild or Decision(Action.NOOP, cid, app)

        if not snap.is_attached:
            log_event("INFO", "non-network", container_id=short_id, app=app, network=self.inspector.network)
            return Decision(Action.NOOP, cid, app)

        previous = self.registry.get(cid)
        self.registry.put(cid, snap)

        if previous is None:
            log_event("INFO", "new_container", container_id=short_id, app=app, ip_address=snap.network_address)
            return Decision(Action.REGISTER, cid, app, new_address=snap.network_address)

        if previous.network_address == snap.network_address:
            return Decision(Action.NOOP, cid, app)

        log_event(
            "INFO",
            "reloading_proxy",
            container_id=short_id,
            app=app,
            old_ip_address=previous.network_address,
            new_ip_address=snap.network_address,
        )
        result = self.dispatcher.reload_proxy(app)
        if not result.ok:
            log_event("WARN", "reload_failed", container_id=short_id, app=app, error=result.error)
        return Decision(
            Action.RELOAD,
            cid,
            app,
            ok=result.ok,
            error=result.error,
            old_address=previous.network_address,
            new_address=snap.network_address,
        )

    def _maybe_rebuild(self, snap, short_id: str) -> Decision | None:
        if snap.restart_policy_name == "no":
            return None
        # Exact match: Docker stops restarting once the count reaches the limit.
        if snap.restart_count != snap.restart_policy_max_retries:
            return None

        log_event(
            "INFO",
            "rebuilding_app",
            container_id=short_id,
            app=snap.app_name,
            restart_policy=snap.restart_policy_name,
            restart_count=snap.restart_count,
            max_restart_count=snap.restart_policy_max_retries,
        )
        result = self.dispatcher.rebuild_app(snap.app_name)
        if not result.ok:
            log_event("WARN", "rebuild_failed", container_id=short_id, app=snap.app_name, error=result.error)
        return Decision(Action.REBUILD, snap.id, snap.app_name, ok=result.ok, error=result.error)
