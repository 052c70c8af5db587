from functools import lru_cache
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


STABILITY_ULTRA_URL = "https://api.stability.ai/v2beta/stable-image/generate/ultra"


class Settings(BaseSettings):
    """Runtime configuration for the image proxy."""

    #----------------------------------------------------------
    # Upstream API settings
    #----------------------------------------------------------
    stability_api_key: SecretStr = Field(
        default="",
        validation_alias=AliasChoices("STABILITY_API_KEY", "stability_api_key"),
        description="Bearer token for the Stability AI image API.",
    )

    stability_api_url: str = Field(
        default=STABILITY_ULTRA_URL,
        description="Endpoint that receives the multipart generation requests.",
    )

    upstream_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout applied to a single call to the upstream API.",
    )

    require_api_key_at_startup: bool = Field(
        default=False,
        description="If true, refuse to start when the upstream API key is missing.",
    )

    #----------------------------------------------------------
    # Source image settings
    #----------------------------------------------------------
    max_image_size_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest source image accepted by the enhance endpoint.",
    )

    download_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied when downloading a source image.",
    )

    #----------------------------------------------------------
    # Server settings
    #----------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Root log level applied at startup.",
    )

    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "port"),
        description="Port used when the app is started as a script.",
    )

    model_config = SettingsConfigDict(
        env_prefix="IMAGEPROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.stability_api_key.get_secret_value().strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
