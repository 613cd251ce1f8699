from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Outbound HTTP
    http_timeout: float = 10.0
    http_verify_ssl: bool = True  # set False behind corporate SSL-inspection proxies

    # Whole-pipeline deadline in seconds; None disables it
    resolve_timeout: float | None = 30.0

    # Extraction job API (tier 4 is disabled when no token is set)
    firecrawl_api_token: str | None = None
    firecrawl_api_base: str = "https://api.firecrawl.dev"
    extract_poll_interval: float = 2.0
    extract_max_polls: int = 10

    # Local IPC transport
    ipc_socket_path: str = "/tmp/oembed-resolver.sock"
    ipc_max_concurrency: int = 16
    ipc_max_line_bytes: int = 65536

    # Logging
    log_level: str = "INFO"


settings = Settings()
