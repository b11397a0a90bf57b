from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from .errors import ContainerNotFound, DockerUnavailable, EventStreamError, InspectError
from .settings import settings


@dataclass(frozen=True)
class ContainerRef:
    id: str
    name: str


@dataclass(frozen=True)
class ContainerSnapshot:
    """Platform-relevant state of one container, read once at inspection time."""

    id: str
    app_name: str | None
    # None when the container is not attached to the data-plane network.
    network_address: str | None
    restart_policy_name: str
    restart_policy_max_retries: int
    restart_count: int

    @property
    def short_id(self) -> str:
        return self.id[:9]

    @property
    def is_managed(self) -> bool:
        return self.app_name is not None

    @property
    def is_attached(self) -> bool:
        return self.network_address is not None

    @classmethod
    def from_inspect(cls, data: dict[str, Any], app_label: str, network: str) -> "ContainerSnapshot":
        """Build a snapshot from a raw ``docker inspect`` payload."""
        config = data.get("Config") or {}
        labels = config.get("Labels") or {}
        networks = (data.get("NetworkSettings") or {}).get("Networks") or {}
        policy = (data.get("HostConfig") or {}).get("RestartPolicy") or {}

        address = None
        if network in networks:
            address = (networks[network] or {}).get("IPAddress", "")

        return cls(
            id=data["Id"],
            app_name=labels.get(app_label) or None,
            network_address=address,
            # Docker reports an empty name for containers created without a policy.
            restart_policy_name=policy.get("Name") or "no",
            restart_policy_max_retries=int(policy.get("MaximumRetryCount") or 0),
            restart_count=int(data.get("RestartCount") or 0),
        )


@dataclass(frozen=True)
class LifecycleEvent:
    id: str
    action: str
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def short_id(self) -> str:
        return self.id[:9]

    @classmethod
    def from_docker(cls, raw: dict[str, Any]) -> "LifecycleEvent":
        actor = raw.get("Actor") or {}
        return cls(
            id=actor.get("ID") or raw.get("id", ""),
            action=raw.get("Action") or raw.get("status", ""),
            attributes=dict(actor.get("Attributes") or {}),
        )


class EventStream:
    """Iterable over container lifecycle events.

    Any transport error, or the daemon closing the stream, surfaces as
    EventStreamError. Closing the stream locally ends iteration quietly.
    """

    def __init__(self, raw: Iterable[dict[str, Any]]):
        self._raw = raw
        self._closed = False

    def __iter__(self) -> Iterator[LifecycleEvent]:
        try:
            for item in self._raw:
                if item.get("Type", "container") != "container":
                    continue
                yield LifecycleEvent.from_docker(item)
        except (DockerException, RequestException, OSError) as e:
            if self._closed:
                return
            raise EventStreamError(f"{type(e).__name__}: {e}") from e
        if not self._closed:
            raise EventStreamError("event stream closed by the docker daemon")

    def close(self) -> None:
        self._closed = True
        close = getattr(self._raw, "close", None)
        if close is not None:
            close()


def connect(api_version: str | None = None) -> docker.DockerClient:
    """Open a client against the local daemon and make sure it answers."""
    try:
        client = docker.from_env(version=api_version or settings.docker_api_version)
        client.ping()
    except DockerException as e:
        raise DockerUnavailable(str(e)) from e
    return client


class DockerInspector:
    """Read-only view of the Docker daemon used by the reconciler."""

    def __init__(self, client: docker.DockerClient, app_label: str | None = None, network: str | None = None):
        self.client = client
        self.app_label = app_label or settings.app_label
        self.network = network or settings.network

    def list_containers(self, labels: list[str]) -> list[ContainerRef]:
        """Running containers carrying every label in `labels`."""
        try:
            items = self.client.api.containers(filters={"label": list(labels)})
        except (DockerException, RequestException) as e:
            raise InspectError("", str(e)) from e
        out: list[ContainerRef] = []
        for x in items:
            names = x.get("Names") or []
            out.append(ContainerRef(id=x["Id"], name=names[0].lstrip("/") if names else ""))
        return out

    def inspect(self, container_id: str) -> ContainerSnapshot:
        try:
            data = self.client.api.inspect_container(container_id)
        except NotFound as e:
            raise ContainerNotFound(container_id, str(e)) from e
        except (DockerException, RequestException) as e:
            raise InspectError(container_id, str(e)) from e
        return ContainerSnapshot.from_inspect(data, self.app_label, self.network)

    def events(self, since: int, labels: list[str]) -> EventStream:
        filters = {"type": "container", "label": list(labels)}
        try:
            raw = self.client.api.events(since=since, filters=filters, decode=True)
        except (DockerException, RequestException) as e:
            raise EventStreamError(str(e)) from e
        return EventStream(raw)
