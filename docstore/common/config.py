"""
Configuration loader for the document repository layer.

Loads process-wide settings from environment variables (.env file).
Store connection settings are read per call by StoreConfig.from_env
(see docstore.repositories.config).
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized process-wide configuration.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Logging =====
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")  # "simple" or "json"

    # ===== HTTP =====
    # Include exception details in 500 responses (never enable in production)
    EXPOSE_INTERNAL_ERRORS: bool = os.getenv("EXPOSE_INTERNAL_ERRORS", "false").lower() == "true"
