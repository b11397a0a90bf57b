from __future__ import annotations


class ReconcilerError(Exception):
    """Base class for errors raised by the reconciler."""


class DockerUnavailable(ReconcilerError):
    """The Docker daemon could not be reached."""


class InspectError(ReconcilerError):
    """A container could not be inspected."""

    def __init__(self, container_id: str, detail: str):
        super().__init__(f"inspect {container_id[:9]}: {detail}")
        self.container_id = container_id
        self.detail = detail


class ContainerNotFound(InspectError):
    """The container vanished before it could be inspected."""


class BootstrapError(ReconcilerError):
    """The startup scan could not build a complete registry."""


class EventStreamError(ReconcilerError):
    """The Docker event stream failed or ended. Always fatal."""
