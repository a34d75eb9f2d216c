"""Core request-processing components for Promptforge.

This module provides the pieces the API layer wires together:

- **PromptforgeConfig**: Configuration management using Pydantic Settings
- **PromptExpander**: Rule-based idea -> prompt expansion
- **ImageGenerator**: Image generation backends (placeholder, HTTP)
- **RequestStore**: Persistence of generation requests (SQLite)
- **RequestOrchestrator**: The request lifecycle state machine

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with PROMPTFORGE_ in .env files
   - Built explicitly and passed to each component

2. **Model Layer** (models.py, errors.py):
   - GenerationRequest record, RequestStatus, StatusUpdate
   - Step result values and the exception taxonomy

3. **Component Layer** (prompt_expander.py, image_generator.py, request_store.py):
   - Pure prompt expansion
   - Opaque image generation call
   - SQLite-backed record store

4. **Orchestration Layer** (orchestrator.py):
   - pending -> processing -> completed | failed
   - Failures after creation become terminal ``failed`` records

Usage Example
-------------
    from promptforge.core import PromptforgeConfig, build_orchestrator

    orchestrator = build_orchestrator(PromptforgeConfig())
    record = orchestrator.process("a lighthouse at sunset")
"""

from promptforge.core.config import PromptforgeConfig
from promptforge.core.errors import (
    ConflictError,
    GenerationError,
    NotFoundError,
    PromptforgeError,
    StorageError,
    ValidationError,
)
from promptforge.core.image_generator import (
    HttpImageGenerator,
    ImageGenerator,
    PlaceholderImageGenerator,
    create_image_generator,
)
from promptforge.core.models import GenerationRequest, RequestStatus, StatusUpdate
from promptforge.core.orchestrator import RequestOrchestrator, build_orchestrator
from promptforge.core.prompt_expander import PromptExpander, expand_prompt
from promptforge.core.request_store import RequestStore, SQLiteRequestStore

__all__ = [
    "ConflictError",
    "GenerationError",
    "GenerationRequest",
    "HttpImageGenerator",
    "ImageGenerator",
    "NotFoundError",
    "PlaceholderImageGenerator",
    "PromptExpander",
    "PromptforgeConfig",
    "PromptforgeError",
    "RequestOrchestrator",
    "RequestStatus",
    "RequestStore",
    "SQLiteRequestStore",
    "StatusUpdate",
    "StorageError",
    "ValidationError",
    "build_orchestrator",
    "create_image_generator",
    "expand_prompt",
]
