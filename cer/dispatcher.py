from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Callable

from .settings import settings


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    returncode: int | None = None
    error: str | None = None


def run_external(argv: list[str], env: dict[str, str] | None = None, quiet: bool = False) -> CommandResult:
    """Run a command to completion.

    The child inherits our environment plus `env`. Output goes to our own
    stdout/stderr unless `quiet` is set. Failures are returned, never raised.
    """
    if not argv:
        return CommandResult(ok=False, error="empty command")
    full_env = dict(os.environ)
    full_env.update(env or {})
    sink = subprocess.DEVNULL if quiet else None
    try:
        proc = subprocess.run(argv, env=full_env, stdout=sink, stderr=sink, check=False)
    except OSError as e:
        return CommandResult(ok=False, error=f"{type(e).__name__}: {e}")
    if proc.returncode != 0:
        return CommandResult(ok=False, returncode=proc.returncode, error=f"exit status {proc.returncode}")
    return CommandResult(ok=True, returncode=0)


Runner = Callable[..., CommandResult]


class Dispatcher:
    """Turns reconciler decisions into platform CLI invocations."""

    def __init__(
        self,
        cli: str | None = None,
        rebuild_subcommand: str | None = None,
        reload_subcommand: str | None = None,
        env: dict[str, str] | None = None,
        runner: Runner = run_external,
    ):
        self.cli = cli or settings.platform_cli
        self.rebuild_subcommand = rebuild_subcommand or settings.rebuild_subcommand
        self.reload_subcommand = reload_subcommand or settings.reload_subcommand
        self.env = env or {}
        self.runner = runner

    def command(self, subcommand: str, app: str) -> list[str]:
        return [self.cli, "--quiet", subcommand, app]

    def rebuild_app(self, app: str) -> CommandResult:
        return self.runner(self.command(self.rebuild_subcommand, app), env=self.env, quiet=True)

    def reload_proxy(self, app: str) -> CommandResult:
        return self.runner(self.command(self.reload_subcommand, app), env=self.env, quiet=True)
