import os as _os
import sys
from dataclasses import replace

import pytest

# Ensure project root is importable (so `import main` / `import cli` work across environments)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from cer import db  # noqa: E402
from cer.dispatcher import CommandResult, Dispatcher  # noqa: E402
from cer.docker_ops import ContainerRef, ContainerSnapshot, EventStream  # noqa: E402
from cer.errors import ContainerNotFound  # noqa: E402
from cer.registry import ContainerRegistry  # noqa: E402


C1 = "c1" + "a" * 62
C2 = "c2" + "b" * 62


@pytest.fixture(autouse=True)
def journal(tmp_path, monkeypatch):
    """Point the event journal at a throwaway sqlite file."""
    monkeypatch.setattr(db, "settings", replace(db.settings, db_path=str(tmp_path / "journal.db")))
    db.init_db()
    return db


def make_snapshot(
    cid=C1,
    app="blog",
    address="10.0.0.5",
    policy="on-failure",
    max_retries=3,
    restart_count=0,
):
    return ContainerSnapshot(
        id=cid,
        app_name=app,
        network_address=address,
        restart_policy_name=policy,
        restart_policy_max_retries=max_retries,
        restart_count=restart_count,
    )


class FakeInspector:
    """Stands in for DockerInspector; snapshots are swapped in by the test."""

    network = "bridge"

    def __init__(self):
        self.snapshots = {}
        self.raw_events = []
        self.inspected = []
        self.listed_labels = None
        self.since = None

    def inspect(self, container_id):
        self.inspected.append(container_id)
        snap = self.snapshots.get(container_id)
        if snap is None:
            raise ContainerNotFound(container_id, "No such container")
        if isinstance(snap, Exception):
            raise snap
        return snap

    def list_containers(self, labels):
        self.listed_labels = labels
        return [ContainerRef(id=cid, name=cid[:9]) for cid in self.snapshots]

    def events(self, since, labels):
        self.since = since
        self.listed_labels = labels
        return EventStream(self.raw_events)


class RecordingRunner:
    def __init__(self):
        self.calls = []
        self.results = []

    def __call__(self, argv, env=None, quiet=False):
        self.calls.append(list(argv))
        if self.results:
            return self.results.pop(0)
        return CommandResult(ok=True, returncode=0)

    def fail_next(self, error="exit status 1"):
        self.results.append(CommandResult(ok=False, returncode=1, error=error))


@pytest.fixture
def snapshot():
    return make_snapshot


@pytest.fixture
def inspector():
    return FakeInspector()


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def dispatcher(runner):
    return Dispatcher(cli="dokku", rebuild_subcommand="ps:rebuild", reload_subcommand="proxy:build-config", runner=runner)


@pytest.fixture
def registry():
    return ContainerRegistry()


def docker_event(cid, action, time=1700000000, **attributes):
    """Decoded event payload as the Docker daemon sends it."""
    return {
        "Type": "container",
        "Action": action,
        "status": action,
        "id": cid,
        "Actor": {"ID": cid, "Attributes": attributes},
        "time": time,
    }
