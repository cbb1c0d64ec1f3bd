"""
Downloader settings loaded from environment variables.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DOWNLOAD_LOCATION_ENV = "S3_DOWNLOADER_DOWNLOAD_LOCATION"
CUSTOM_DOWNLOAD_PATH_ENV = "S3_DOWNLOADER_CUSTOM_DOWNLOAD_PATH"
ALWAYS_PROMPT_ENV = "S3_DOWNLOADER_ALWAYS_PROMPT"
REGION_ENVS = ("S3_REGION", "AWS_REGION", "AWS_DEFAULT_REGION")
ENDPOINT_URL_ENV = "S3_ENDPOINT_URL"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class DownloaderSettings(BaseModel):
    """Where downloads go and how S3 is reached."""
    download_location: str = Field(
        default="downloads",
        description="Destination strategy: downloads, workspace, temp or custom",
    )
    custom_download_path: str = Field(
        default="", description="Absolute folder used when download_location is 'custom'"
    )
    always_prompt_for_location: bool = Field(
        default=False, description="Ask for a folder on every download"
    )
    default_region: Optional[str] = Field(
        None, description="Region used when bucket region discovery fails"
    )
    endpoint_url: Optional[str] = Field(
        None, description="Endpoint for S3-compatible stores (MinIO, SeaweedFS)"
    )

    @field_validator("download_location")
    @classmethod
    def normalize_location(cls, v: str) -> str:
        # Unknown values are kept so the location policy can warn and fall back
        return v.strip().lower()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DownloaderSettings":
        env = os.environ if environ is None else environ

        region = next((env[name] for name in REGION_ENVS if env.get(name)), None)
        values: dict = {
            "download_location": env.get(DOWNLOAD_LOCATION_ENV) or "downloads",
            "custom_download_path": env.get(CUSTOM_DOWNLOAD_PATH_ENV, ""),
            "always_prompt_for_location": (env.get(ALWAYS_PROMPT_ENV) or "").strip().lower()
            in _TRUE_VALUES,
            "default_region": region,
            "endpoint_url": env.get(ENDPOINT_URL_ENV) or None,
        }
        return cls(**values)
