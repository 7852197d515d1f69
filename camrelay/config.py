"""Configuration management for the camera relay service.

Uses Pydantic Settings for environment variable and .env file support.
"""

from typing import List, Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RELAY_USERNAME = "admin"
DEFAULT_RELAY_PASSWORD = "admin"


class RelaySettings(BaseSettings):
    """Media relay control-plane settings."""

    model_config = SettingsConfigDict(env_prefix="RELAY_", populate_by_name=True)

    api_url: str = Field(
        default="http://127.0.0.1:9997",
        validation_alias=AliasChoices("RELAY_API_URL", "MEDIAMTX_API"),
        description="Base URL of the relay's path-management API",
    )
    username: str = Field(
        default=DEFAULT_RELAY_USERNAME,
        description="Basic auth user for the relay API",
    )
    password: str = Field(
        default=DEFAULT_RELAY_PASSWORD,
        description="Basic auth password for the relay API",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Total timeout for a single relay API request",
    )

    @property
    def uses_default_credentials(self) -> bool:
        return (
            self.username == DEFAULT_RELAY_USERNAME
            and self.password == DEFAULT_RELAY_PASSWORD
        )


class ServerSettings(BaseSettings):
    """FastAPI server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", populate_by_name=True)

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )
    port: int = Field(
        default=3001,
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
        description="Port to listen on"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional rotating log file path"
    )
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )


class PlaybackSettings(BaseSettings):
    """Ports and host the relay serves playback on.

    These mirror the relay's own listeners and are only reported to
    clients; this service never binds them.
    """

    model_config = SettingsConfigDict(populate_by_name=True)

    public_host: str = Field(
        default="localhost",
        validation_alias=AliasChoices("PLAYBACK_HOST"),
    )
    rtsp_port: int = Field(
        default=8554,
        validation_alias=AliasChoices("RTSP_PORT"),
    )
    hls_port: int = Field(
        default=8888,
        validation_alias=AliasChoices("HLS_PORT"),
    )
    webrtc_port: int = Field(
        default=8889,
        validation_alias=AliasChoices("WEBRTC_PORT"),
    )

    def hls_url(self, stream_id: str) -> str:
        return f"http://{self.public_host}:{self.hls_port}/{stream_id}/index.m3u8"

    def webrtc_url(self, stream_id: str) -> str:
        return f"http://{self.public_host}:{self.webrtc_port}/{stream_id}"


class TelemetrySettings(BaseSettings):
    """Host telemetry sampling settings."""

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_")

    disk_path: str = Field(
        default="/",
        description="Mount point reported by disk statistics"
    )
    disk_method: Literal["statvfs", "df"] = Field(
        default="statvfs",
        description="statvfs for a native query, df to parse `df -k` output"
    )
    df_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for the df subprocess"
    )


class Settings(BaseSettings):
    """Root settings for the camera relay service.

    Settings are loaded from environment variables or from a .env file in
    the working directory.

    Example environment variables:
        MEDIAMTX_API=http://mediamtx:9997
        RELAY_USERNAME=admin
        PORT=3001
        HLS_PORT=8888
        TELEMETRY_DISK_METHOD=df
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    service_name: str = Field(
        default="IP Cam Backend",
        description="Name reported by /api/server-info"
    )

    # Nested settings
    relay: RelaySettings = Field(default_factory=RelaySettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
