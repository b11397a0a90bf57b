from __future__ import annotations

from threading import Lock

from .docker_ops import ContainerSnapshot


class ContainerRegistry:
    """In-memory map of container id -> last known snapshot.

    Only the event loop writes to it. The lock lets the status API take
    consistent copies from its own thread.
    """

    def __init__(self) -> None:
        self.lock = Lock()
        self._containers: dict[str, ContainerSnapshot] = {}

    def get(self, container_id: str) -> ContainerSnapshot | None:
        with self.lock:
            return self._containers.get(container_id)

    def put(self, container_id: str, snapshot: ContainerSnapshot) -> None:
        with self.lock:
            self._containers[container_id] = snapshot

    def remove(self, container_id: str) -> ContainerSnapshot | None:
        with self.lock:
            return self._containers.pop(container_id, None)

    def clear(self) -> None:
        with self.lock:
            self._containers.clear()

    def snapshots(self) -> list[ContainerSnapshot]:
        with self.lock:
            return list(self._containers.values())

    def find(self, prefix: str) -> list[ContainerSnapshot]:
        """Snapshots whose id starts with `prefix` (docker-style short ids)."""
        with self.lock:
            return [s for cid, s in self._containers.items() if cid.startswith(prefix)]

    def __contains__(self, container_id: object) -> bool:
        with self.lock:
            return container_id in self._containers

    def __len__(self) -> int:
        with self.lock:
            return len(self._containers)
