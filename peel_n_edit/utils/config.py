"""Configuration management for the edit assistant."""

import os
from pathlib import Path
from typing import Optional, Union
import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_MODELS_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "models.yaml"


class ModelsConfig(BaseModel):
    """Remote model identifiers for each pipeline."""
    sequential_edit: str = "gemini-2.5-flash-image-preview"
    preview: str = "gemini-2.5-flash-image-preview"
    suggestions: str = "gemini-2.5-flash"
    single_shot: str = "fal-ai/flux-pro/kontext/max"


class Config(BaseModel):
    """Main application configuration."""

    # API Keys
    gemini_api_key: str = Field(..., alias="GEMINI_API_KEY")
    fal_key: str = Field(..., alias="FAL_KEY")

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Remote call policy: one attempt per call unless raised explicitly
    max_attempts_per_call: int = Field(default=1, ge=1, alias="MAX_ATTEMPTS_PER_CALL")

    # Timeout Settings
    timeout_gemini_seconds: float = Field(default=120.0, alias="TIMEOUT_GEMINI_SECONDS")
    timeout_fal_seconds: float = Field(default=60.0, alias="TIMEOUT_FAL_SECONDS")
    timeout_fal_polling_seconds: float = Field(default=300.0, alias="TIMEOUT_FAL_POLLING_SECONDS")
    fal_poll_interval_seconds: float = Field(default=1.0, alias="FAL_POLL_INTERVAL_SECONDS")

    # Suggestion previews are generated from a thumbnail of the upload
    preview_max_side: int = Field(default=256, gt=0, alias="PREVIEW_MAX_SIDE")

    # Idle sessions are closed after this long without a lookup
    session_ttl_seconds: float = Field(default=3600.0, gt=0, alias="SESSION_TTL_SECONDS")

    models: ModelsConfig = ModelsConfig()

    class Config:
        populate_by_name = True


def load_config(models_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from environment and the models YAML file.

    Args:
        models_path: Path to models.yaml; the bundled file is used when omitted

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    try:
        path = Path(models_path) if models_path else DEFAULT_MODELS_PATH
        models_config = {}

        if path.exists():
            with open(path, "r") as f:
                models_config = yaml.safe_load(f) or {}
        elif models_path:
            raise ConfigurationError(f"models.yaml not found at {path}")
        else:
            logger.warning(
                "models.yaml not found, using default model identifiers",
                extra={"path": str(path)}
            )

        config_data = {
            **os.environ,
            **models_config,
        }

        config = Config(**config_data)

        logger.info(
            "Configuration loaded successfully",
            extra={
                "environment": config.app_env,
                "sequential_model": config.models.sequential_edit,
                "single_shot_model": config.models.single_shot,
            }
        )

        return config

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")

