from __future__ import annotations

import time

from .db import log_event
from .docker_ops import DockerInspector
from .errors import BootstrapError, InspectError
from .registry import ContainerRegistry


def bootstrap(
    registry: ContainerRegistry,
    inspector: DockerInspector,
    labels: list[str],
    strict: bool = False,
) -> int:
    """Seed `registry` with the running, platform-managed containers.

    Returns the unix time taken before listing, so the event subscription can
    start there without a gap. Events that happen during the scan may be seen
    twice; the classifier handles repeats.

    Any inspection failure aborts the scan. A container that is not on the
    data-plane network is skipped, or aborts the scan when `strict` is set.
    """
    started_at = int(time.time())
    registry.clear()

    try:
        refs = inspector.list_containers(labels)
    except InspectError as e:
        raise BootstrapError(f"listing containers failed: {e.detail}") from e

    for ref in refs:
        try:
            snap = inspector.inspect(ref.id)
        except InspectError as e:
            raise BootstrapError(f"inspecting {ref.id[:9]} failed: {e.detail}") from e

        if not snap.is_managed:
            continue

        if not snap.is_attached:
            if strict:
                raise BootstrapError(
                    f"container {snap.short_id} ({snap.app_name}) is not attached to network '{inspector.network}'"
                )
            log_event(
                "WARN",
                "register_skip:non-network",
                container_id=snap.short_id,
                app=snap.app_name,
                name=ref.name,
                network=inspector.network,
            )
            continue

        registry.put(snap.id, snap)
        log_event(
            "INFO",
            "register_container",
            container_id=snap.short_id,
            app=snap.app_name,
            name=ref.name,
            ip_address=snap.network_address,
        )

    return started_at
