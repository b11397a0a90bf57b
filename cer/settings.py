from __future__ import annotations

import os
from dataclasses import dataclass

ENV_PREFIX = "CER_"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    return default if raw is None else raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Docker
    docker_api_version: str = _env("DOCKER_API_VERSION", "1.25")
    app_label: str = _env("APP_LABEL", "com.dokku.app-name")
    process_label: str = _env("PROCESS_LABEL", "com.dokku.process-type=web")
    filter_process_type: bool = _env_bool("FILTER_PROCESS_TYPE")
    # Network whose address the proxy routes to.
    network: str = _env("NETWORK", "bridge")

    # Platform commands
    platform_cli: str = _env("PLATFORM_CLI", "dokku")
    rebuild_subcommand: str = _env("REBUILD_SUBCOMMAND", "ps:rebuild")
    # Older Dokku releases call this nginx:build-config.
    reload_subcommand: str = _env("RELOAD_SUBCOMMAND", "proxy:build-config")

    # Abort startup instead of skipping containers that are off the network.
    strict_bootstrap: bool = _env_bool("STRICT_BOOTSTRAP")

    # Journal / logging
    db_path: str = _env("DB_PATH", "cer.db")
    log_level: str = _env("LOG_LEVEL", "INFO")

    # Status API
    enable_api: bool = _env_bool("ENABLE_API", True)
    api_host: str = _env("API_HOST", "127.0.0.1")
    api_port: int = _env_int("API_PORT", 8088)
    api_user: str = _env("API_USER", "admin")
    api_password: str | None = _env("API_PASSWORD")

    def selector_labels(self, process_type: bool = False) -> list[str]:
        """Label filters shared by the bootstrap listing and the event subscription.

        `process_type` turns on the web process filter on top of the configured one.
        """
        labels = [self.app_label]
        if process_type or self.filter_process_type:
            labels.append(self.process_label)
        return labels


settings = Settings()
