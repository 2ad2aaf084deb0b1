"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    AWS credentials are resolved by boto3's own provider chain and are
    never read or stored here.
    """

    # AWS / DynamoDB Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region hosting the follows table"
    )
    dynamodb_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override endpoint (e.g. http://localhost:8000 for DynamoDB Local)"
    )

    # Table layout
    follows_table_name: str = Field(
        default="follows",
        description="Base table keyed by (follower_handle, followee_handle)"
    )
    follows_index_name: str = Field(
        default="follows_index",
        description="Global secondary index keyed by (followee_handle, follower_handle)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Root logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(
        default=True,
        description="Emit structured JSON logs (False for human-readable lines)"
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @field_validator("aws_region")
    @classmethod
    def validate_aws_region(cls, v: str) -> str:
        """Reject an empty region; boto3 cannot build an endpoint without one."""
        if not v or v.strip() == "":
            raise ValueError("AWS_REGION is required and cannot be empty")
        return v.strip()

    @field_validator("dynamodb_endpoint_url", mode="before")
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """
        Validate the optional endpoint override.

        Empty strings are treated as unset so a blank line in .env does not
        point boto3 at an invalid URL.
        """
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError(
                f"DYNAMODB_ENDPOINT_URL must start with http:// or https://. "
                f"Got: {v[:20]}..."
            )
        return v

    @field_validator("follows_table_name", "follows_index_name")
    @classmethod
    def validate_names(cls, v: str, info) -> str:
        """Table and index names must be non-empty."""
        field_name = info.field_name
        if not v or v.strip() == "":
            raise ValueError(f"{field_name.upper()} is required and cannot be empty")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = (v or "").strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL. Got: {v}"
            )
        return level


# Global settings instance
# Import this instance throughout the application
settings = Settings()
