"""
amendflow.settings
==================

Configuration settings for the amendflow application.

This module provides centralized configuration options that can be used across
the application. It includes default values that can be overridden
via environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

from .models import DEFAULT_THRESHOLDS

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = os.environ.get("AMENDFLOW_DB_FILE", BASE_DIR / "amendflow.db")
DB_URL = f"sqlite:///{DB_FILE}"
DB_ECHO = os.environ.get("AMENDFLOW_DB_ECHO", "False").lower() == "true"

# API settings
# ---------------------------------------------------------------------------
API_HOST = os.environ.get("AMENDFLOW_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("AMENDFLOW_API_PORT", "8000"))
API_DEBUG = os.environ.get("AMENDFLOW_API_DEBUG", "False").lower() == "true"


# ---------------------------------------------------------------------------
# Pydantic settings model for the contract rules
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Pydantic model for application settings, loaded from environment variables."""

    # Expiration alerts
    notification_thresholds: List[int] = Field(
        default_factory=lambda: list(DEFAULT_THRESHOLDS),
        description="Days before expiration on which an alert fires",
    )
    additional_emails: List[str] = Field(
        default_factory=list,
        description="Addresses copied on every expiration alert",
    )

    # Contract status
    contract_warning_days: int = Field(30, description="Days remaining at or below which a contract is in warning")

    # Malformed dates and unknown stored tags yield safe defaults instead of errors when true
    lenient_dates: bool = Field(True, description="Fail-soft parsing of stored dates and tags")

    class Config:
        """Configuration for the settings model."""
        env_prefix = "AMENDFLOW_"
        env_file = ".env"  # load from .env file if present
        case_sensitive = False  # case-insensitive environment variables
        extra = "ignore"


# Initialize settings
settings = Settings()
