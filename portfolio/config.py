from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio.errors import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(alias="DATABASE_URL", min_length=1)
    statsd_address: str = Field(default="", alias="STATSD_ADDRESS")
    statsd_prefix: str = Field(default="portfolio_grpc.api", alias="STATSD_PREFIX")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    allowed_origin: str = Field(default="*", alias="ALLOWED_ORIGIN")

    grpc_host: str = Field(default="0.0.0.0", alias="GRPC_HOST")
    grpc_port: int = Field(default=50051, alias="GRPC_PORT")
    http_host: str = Field(default="0.0.0.0", alias="HTTP_HOST")
    http_port: int = Field(default=8080, alias="HTTP_PORT")
    shutdown_grace_seconds: float = Field(default=5.0, alias="SHUTDOWN_GRACE_SECONDS")

    def statsd_endpoint(self) -> tuple[str, int] | None:
        """Parse STATSD_ADDRESS as ``host:port``; ``None`` when unset."""

        if not self.statsd_address:
            return None

        parts = self.statsd_address.split(":")
        if len(parts) != 2 or not parts[0]:
            raise ConfigError(f"invalid STATSD_ADDRESS format: {self.statsd_address!r}")

        try:
            port = int(parts[1])
        except ValueError as exc:
            raise ConfigError(f"invalid STATSD_ADDRESS port: {parts[1]!r}") from exc
        return parts[0], port

    @property
    def grpc_target(self) -> str:
        """Address the HTTP gateway dials to reach the local RPC server."""

        return f"127.0.0.1:{self.grpc_port}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
