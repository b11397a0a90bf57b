from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any

from .settings import settings


logger = logging.getLogger("cer")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def journal_enabled() -> bool:
    return bool(settings.db_path)


def _resolve_db_path() -> str:
    """Journal file location.

    A directory at the configured path (Docker creates one for a missing
    bind-mount source) gets ``cer.db`` inside it.
    """
    path = os.path.abspath(settings.db_path)
    if os.path.isdir(path):
        return os.path.join(path, "cer.db")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return path


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist.

    A journal that cannot be created is reported and otherwise ignored; the
    watcher runs without it.
    """
    if not journal_enabled():
        return
    try:
        with connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS events (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  ts TEXT NOT NULL,
                  level TEXT NOT NULL,
                  message TEXT NOT NULL,
                  container_id TEXT,
                  app TEXT,
                  fields TEXT NOT NULL DEFAULT '{}'
                );

                CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
                CREATE INDEX IF NOT EXISTS idx_events_app ON events(app);
                """
            )
    except (sqlite3.Error, OSError):
        logger.exception("journal_init_failed path=%s", settings.db_path)


def _format(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    pairs = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
    return f"{message} {pairs}" if pairs else message


def log_event(level: str, message: str, **fields: Any) -> None:
    """Emit a structured record and append it to the journal.

    `message` is a short event key (``new_container``, ``reload_failed``...);
    everything else goes in as key/value fields. ``container_id`` and ``app``
    get their own columns so the journal can be filtered by them.

    Journal writes never raise: the caller is usually halfway through handling
    an event and must still reach its dispatch.
    """
    level = level.upper()
    logger.log(_LEVELS.get(level, logging.INFO), _format(message, fields))

    if not journal_enabled():
        return
    extra = {k: v for k, v in fields.items() if k not in {"container_id", "app"} and v is not None}
    try:
        with connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, message, container_id, app, fields) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    utc_now(),
                    level,
                    message,
                    fields.get("container_id"),
                    fields.get("app"),
                    json.dumps(extra, default=str),
                ),
            )
    except (sqlite3.Error, OSError):
        logger.exception("journal_write_failed message=%s", message)


def latest_events(limit: int = 100, container_id: str | None = None, app: str | None = None) -> list[dict[str, Any]]:
    if not journal_enabled():
        return []
    clauses: list[str] = []
    params: list[Any] = []
    if container_id:
        clauses.append("container_id=?")
        params.append(container_id[:9])
    if app:
        clauses.append("app=?")
        params.append(app)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    with connect() as conn:
        rows = conn.execute(
            f"SELECT * FROM events {where} ORDER BY id DESC LIMIT ?",
            (*params, limit),
        ).fetchall()
    out: list[dict[str, Any]] = []
    for r in rows:
        row = dict(r)
        row["fields"] = json.loads(row["fields"] or "{}")
        out.append(row)
    return out
