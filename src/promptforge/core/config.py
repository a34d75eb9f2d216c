"""Configuration management for Promptforge.

This module provides configuration management using Pydantic Settings.
Values are loaded from environment variables with the PROMPTFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword arguments passed to ``PromptforgeConfig(...)``
2. Environment variables (PROMPTFORGE_* prefix)
3. .env file in the working directory
4. Default values defined in PromptforgeConfig

Example .env file:
    PROMPTFORGE_DATA_DIR=data
    PROMPTFORGE_IMAGE_BACKEND=http
    PROMPTFORGE_IMAGE_API_URL=https://images.internal/v1/generate
    PROMPTFORGE_IMAGE_API_KEY=secret
    PROMPTFORGE_SERVER_PORT=8080

Explicit Construction
---------------------
There is no module-level configuration instance.  The entry point builds a
``PromptforgeConfig`` once and hands it to the store, the image generator and
the FastAPI app factory.  Tests build their own instance pointing at a
temporary directory.

Usage Example
-------------
    from promptforge.core.config import PromptforgeConfig
    from promptforge.core.orchestrator import build_orchestrator

    config = PromptforgeConfig()
    orchestrator = build_orchestrator(config)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PromptforgeConfig(BaseSettings):
    """Main configuration for Promptforge.

    Attributes
    ----------
    Storage:
        data_dir : Path
            Directory holding the SQLite database (created on init)
        database_path : Path | None
            SQLite database file; defaults to ``data_dir / "requests.db"``

    Image Generation:
        image_backend : Literal["placeholder", "http"]
            Which ImageGenerator backend to build
        image_base_url : str
            Base URL for placeholder image references
        image_api_url : str | None
            Endpoint of the remote generation service (http backend)
        image_api_key : str | None
            Bearer token sent to the remote service, if any
        image_api_timeout : float
            Client timeout in seconds for the remote call

    Limits:
        max_idea_length : int
            Longest accepted user idea, in characters
        max_prompt_length : int
            Longest expanded prompt passed to the generator

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level configured by ``main()``
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PROMPTFORGE_",
        case_sensitive=False,
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the request database",
    )
    database_path: Path | None = Field(
        default=None,
        description="SQLite database file (defaults to data_dir/requests.db)",
    )

    # Image generation backend
    image_backend: Literal["placeholder", "http"] = Field(
        default="placeholder",
        description="Image generation backend (placeholder or http)",
    )
    image_base_url: str = Field(
        default="https://ai-generated-images.example.com",
        description="Base URL for placeholder image references",
    )
    image_api_url: str | None = Field(
        default=None,
        description="Remote image generation endpoint (http backend only)",
    )
    image_api_key: str | None = Field(
        default=None,
        description="Bearer token for the remote image generation service",
    )
    image_api_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout in seconds for the remote image generation call",
    )

    # Input limits
    max_idea_length: int = Field(default=500, ge=1)
    max_prompt_length: int = Field(default=2000, ge=1)

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the server process",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from tests)
        """
        super().__init__(**kwargs)

        if self.database_path is None:
            self.database_path = self.data_dir / "requests.db"

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
