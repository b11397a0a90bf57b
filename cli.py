from __future__ import annotations

import argparse
import json
import logging
import sys
from threading import Thread

import requests
import uvicorn

from cer import db
from cer.db import log_event
from cer.dispatcher import Dispatcher
from cer.docker_ops import DockerInspector, connect
from cer.errors import BootstrapError, DockerUnavailable, EventStreamError
from cer.reconciler import Reconciler
from cer.registry import ContainerRegistry
from cer.settings import settings
from main import create_app


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _serve_api(registry: ContainerRegistry) -> Thread:
    config = uvicorn.Config(create_app(registry), host=settings.api_host, port=settings.api_port, log_level="warning")
    server = uvicorn.Server(config)
    thr = Thread(target=server.run, name="cer-api", daemon=True)
    thr.start()
    return thr


def watch(args: argparse.Namespace) -> int:
    _configure_logging()
    db.init_db()

    try:
        client = connect(settings.docker_api_version)
    except DockerUnavailable as e:
        log_event("ERROR", "api_connect_failed", error=str(e))
        return 1

    reconciler = Reconciler(
        inspector=DockerInspector(client, network=args.network),
        dispatcher=Dispatcher(reload_subcommand=args.reload_subcommand),
        labels=settings.selector_labels(process_type=args.process_type_filter),
        strict=args.strict or settings.strict_bootstrap,
    )

    try:
        since = reconciler.bootstrap()
    except BootstrapError as e:
        log_event("ERROR", "containers_init_failed", error=str(e))
        return 1

    if settings.enable_api and not args.no_api:
        _serve_api(reconciler.registry)

    try:
        reconciler.run(since)
    except EventStreamError as e:
        log_event("ERROR", "events_failure", error=str(e))
        return 1
    except KeyboardInterrupt:
        reconciler.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Container Event Reconciler")
    p.add_argument("--api", default=f"http://{settings.api_host}:{settings.api_port}", help="Status API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_watch = sub.add_parser("watch", help="Watch platform containers and reload the proxy as necessary")
    s_watch.add_argument("--network", default=settings.network, help="Data-plane network name")
    s_watch.add_argument("--reload-subcommand", default=settings.reload_subcommand)
    s_watch.add_argument("--process-type-filter", action="store_true", help="Only track web process containers")
    s_watch.add_argument("--strict", action="store_true", help="Fail startup on containers off the network")
    s_watch.add_argument("--no-api", action="store_true", help="Do not serve the status API")

    s_ct = sub.add_parser("containers", help="List registered containers")
    s_ct.add_argument("--app")

    s_ev = sub.add_parser("events", help="Show journal events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--app")

    args = p.parse_args(argv)

    if args.cmd == "watch":
        return watch(args)

    base = args.api.rstrip("/")
    auth = (settings.api_user, settings.api_password) if settings.api_password else None

    if args.cmd == "containers":
        params = {"app": args.app} if args.app else {}
        r = requests.get(f"{base}/containers", params=params, auth=auth, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "events":
        params = {"limit": args.limit}
        if args.app:
            params["app"] = args.app
        r = requests.get(f"{base}/events", params=params, auth=auth, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
