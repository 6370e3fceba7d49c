"""Web server configuration."""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class WebConfig:
    """Configuration for the web server and the sync layer."""

    host: str = "0.0.0.0"
    port: int = 8000
    db_path: str = ".taskboard/taskboard.db"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "taskboard-api"
    jwt_audience: str = "taskboard-client"
    jwt_expire_hours: int = 24
    cors_origins: list[str] | None = None
    debug: bool = False
    env: str = "development"  # "development" or "production"
    log_level: str = "INFO"
    # Sync layer
    auth_timeout: float = 10.0  # seconds the handshake may spend verifying a token
    send_queue_size: int = 256  # frames buffered per connection before it is dropped
    close_timeout: float = 5.0  # seconds to wait for a writer to flush on close

    @classmethod
    def load(cls) -> WebConfig:
        config = cls()
        config.host = os.environ.get("TASKBOARD_HOST", config.host)
        config.port = int(os.environ.get("TASKBOARD_PORT", config.port))
        config.db_path = os.environ.get("TASKBOARD_DB_PATH", config.db_path)
        config.jwt_secret = os.environ.get("TASKBOARD_JWT_SECRET", "")
        config.jwt_expire_hours = int(
            os.environ.get("TASKBOARD_JWT_EXPIRE_HOURS", config.jwt_expire_hours)
        )
        config.debug = os.environ.get("TASKBOARD_DEBUG", "").lower() in ("1", "true")
        origins = os.environ.get("TASKBOARD_CORS_ORIGINS")
        if origins:
            config.cors_origins = [o.strip() for o in origins.split(",")]
        config.env = os.environ.get("TASKBOARD_ENV", config.env).lower()
        config.log_level = os.environ.get("TASKBOARD_LOG_LEVEL", config.log_level).upper()

        if env_timeout := os.environ.get("TASKBOARD_AUTH_TIMEOUT"):
            config.auth_timeout = float(env_timeout)
        if env_queue := os.environ.get("TASKBOARD_SEND_QUEUE_SIZE"):
            config.send_queue_size = int(env_queue)
        if env_close := os.environ.get("TASKBOARD_CLOSE_TIMEOUT"):
            config.close_timeout = float(env_close)

        # Fail-closed: production never runs on a generated secret.
        if not config.jwt_secret:
            if config.env == "production":
                raise RuntimeError(
                    "TASKBOARD_JWT_SECRET must be set when TASKBOARD_ENV is 'production'. "
                    "Generate one with: "
                    "python -c \"import secrets; print(secrets.token_hex(32))\""
                )
            config.jwt_secret = secrets.token_hex(32)
            logger.warning(
                "TASKBOARD_JWT_SECRET not set -- using random ephemeral secret. "
                "Tokens will not survive a restart."
            )

        return config
