"""
Configuration loader for the S3 image labeler.

Environment variables are centralized here to keep the rest of the code
focused on the pipeline and to make operational tuning clear.
"""

from functools import lru_cache
from typing import Optional, Tuple

from pydantic import Field, validator
from pydantic_settings import BaseSettings

FAILURE_POLICIES = {"skip", "abort"}


class Settings(BaseSettings):
    # Label
    label_text: str = Field("This is watermark", env="LABEL_TEXT")
    label_color: Tuple[int, int, int, int] = Field((255, 0, 0, 255), env="LABEL_COLOR")
    output_prefix: str = Field("labeled-images/", env="OUTPUT_PREFIX")

    # Batch behaviour
    max_workers: int = Field(8, env="MAX_WORKERS")
    failure_policy: str = Field("skip", env="FAILURE_POLICY")
    strict_format_check: bool = Field(True, env="STRICT_FORMAT_CHECK")
    timeout_safety_margin_seconds: float = Field(2.0, env="TIMEOUT_SAFETY_MARGIN_SECONDS")

    # S3 / S3-compatible storage
    aws_region: Optional[str] = Field(None, env="AWS_REGION")
    s3_endpoint_url: Optional[str] = Field(None, env="S3_ENDPOINT_URL")

    log_level: str = Field("INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @validator("failure_policy")
    def validate_failure_policy(cls, v: str) -> str:  # noqa: B902
        v = v.lower()
        if v not in FAILURE_POLICIES:
            raise ValueError("FAILURE_POLICY must be one of skip|abort")
        return v

    @validator("max_workers")
    def validate_max_workers(cls, v: int) -> int:  # noqa: B902
        if v < 0:
            raise ValueError("MAX_WORKERS must be >= 0 (0 means one thread per record)")
        return v

    @validator("timeout_safety_margin_seconds")
    def validate_timeout_margin(cls, v: float) -> float:  # noqa: B902
        if v < 0:
            raise ValueError("TIMEOUT_SAFETY_MARGIN_SECONDS must be >= 0")
        return v

    @validator("label_color")
    def validate_label_color(cls, v: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:  # noqa: B902
        if any(c < 0 or c > 255 for c in v):
            raise ValueError("LABEL_COLOR components must be within 0-255")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()
