"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

LOCAL_HOSTS = ("localhost", "127.0.0.1")
LOCAL_BACKEND_PORT = 8080


@dataclass
class Config:
    demo_mode: bool = True
    backend_url: str | None = None
    state_path: Path = field(default_factory=lambda: Path.home() / ".task_dashboard" / "state.db")
    seed_path: Path | None = None
    poll_interval: float = 5.0
    request_timeout: float = 30.0
    host: str = "127.0.0.1"
    port: int = 8787

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        # Demo mode unless explicitly switched off.
        demo = os.environ.get("TD_DEMO_MODE", "true")
        config.demo_mode = demo.strip().lower() != "false"

        if url := os.environ.get("TD_BACKEND_URL", "").strip():
            config.backend_url = url

        if state := os.environ.get("TD_STATE_PATH"):
            config.state_path = Path(state)

        if seed := os.environ.get("TD_SEED_PATH"):
            config.seed_path = Path(seed)

        if interval := os.environ.get("TD_POLL_INTERVAL"):
            config.poll_interval = float(interval)

        if timeout := os.environ.get("TD_REQUEST_TIMEOUT"):
            config.request_timeout = float(timeout)

        if host := os.environ.get("TD_HOST"):
            config.host = host

        if port := os.environ.get("TD_PORT"):
            config.port = int(port)

        return config

    @property
    def api_base_url(self) -> str:
        return resolve_backend_url(self.backend_url, self.host)


def resolve_backend_url(configured: str | None, host: str, scheme: str = "http") -> str:
    """Pick the backend base URL.

    An explicit URL wins. Otherwise a dashboard running on a local host talks
    to the backend on port 8080 of the same host, and anything else uses
    same-origin relative paths (returned as an empty string).
    """
    if configured and configured.strip():
        return configured.strip().rstrip("/")
    if host in LOCAL_HOSTS:
        return f"{scheme}://{host}:{LOCAL_BACKEND_PORT}"
    return ""


def get_config() -> Config:
    return Config.from_env()
