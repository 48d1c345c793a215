#!/usr/bin/env python3
"""
Runtime settings read from environment variables.
run_server.py loads a .env file (if any) before these are read.
"""

import os
from dataclasses import dataclass

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2210
DEFAULT_DCSM_TTL = 10
DEFAULT_REMOTE_BASE_URL = "https://bzhang-zencoder-test.s3.us-west-2.amazonaws.com/bbb/"
DEFAULT_CONFIG_FILE = "steering_config.json"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    log_level: str
    remote_base_url: str
    steering_server_url: str
    dcsm_ttl: int
    origin_timeout: int
    origin_max_retries: int
    config_file: str

    @property
    def server_addr(self) -> str:
        return f"{self.host}:{self.port}"


def get_settings() -> Settings:
    """
    Build settings from the environment.

    Priority for the steering manifest URL:
    1. STEERING_SERVER_URL environment variable
    2. http://<HOST>:<PORT>/dash.dcsm
    """
    host = os.getenv("HOST", DEFAULT_HOST)
    port = _int_env("PORT", DEFAULT_PORT)
    steering_server_url = os.getenv("STEERING_SERVER_URL") or f"http://{host}:{port}/dash.dcsm"

    repo_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_file = os.getenv("STEERING_CONFIG_FILE") or os.path.join(repo_root, DEFAULT_CONFIG_FILE)

    return Settings(
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        remote_base_url=os.getenv("REMOTE_BASE_URL") or DEFAULT_REMOTE_BASE_URL,
        steering_server_url=steering_server_url,
        dcsm_ttl=_int_env("DCSM_TTL", DEFAULT_DCSM_TTL),
        origin_timeout=_int_env("ORIGIN_TIMEOUT", 10),
        origin_max_retries=_int_env("ORIGIN_MAX_RETRIES", 3),
        config_file=config_file,
    )
