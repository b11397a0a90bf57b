from __future__ import annotations

from .bootstrap import bootstrap
from .classifier import Decision, EventClassifier
from .db import log_event
from .dispatcher import Dispatcher
from .docker_ops import DockerInspector, EventStream, LifecycleEvent
from .registry import ContainerRegistry
from .settings import settings


class Reconciler:
    """Keeps the registry in step with the Docker event stream.

    Owns the registry; the scanner and the classifier get it passed in.
    """

    def __init__(
        self,
        inspector: DockerInspector,
        dispatcher: Dispatcher,
        registry: ContainerRegistry | None = None,
        labels: list[str] | None = None,
        strict: bool | None = None,
    ):
        self.inspector = inspector
        self.dispatcher = dispatcher
        self.registry = registry if registry is not None else ContainerRegistry()
        self.labels = labels or settings.selector_labels()
        self.strict = settings.strict_bootstrap if strict is None else strict
        self.classifier = EventClassifier(self.registry, inspector, dispatcher)
        self._stop = False
        self._stream: EventStream | None = None

    def bootstrap(self) -> int:
        return bootstrap(self.registry, self.inspector, self.labels, strict=self.strict)

    def handle_event(self, event: LifecycleEvent) -> Decision:
        return self.classifier.handle(event)

    def run(self, since: int) -> None:
        """Process events from `since` until stopped.

        EventStreamError is left to the caller: the stream is the only source of
        truth after bootstrap, so losing it means starting over.
        """
        self._stop = False
        self._stream = self.inspector.events(since, self.labels)
        log_event("INFO", "watching", since=since, network=self.inspector.network)
        for event in self._stream:
            try:
                self.handle_event(event)
            except Exception as e:
                log_event(
                    "ERROR",
                    "event_failed",
                    container_id=event.short_id,
                    name=event.attributes.get("name"),
                    action=event.action,
                    error=f"{type(e).__name__}: {e}",
                )
            if self._stop:
                break
        self._stream = None

    def stop(self) -> None:
        self._stop = True
        if self._stream is not None:
            self._stream.close()
