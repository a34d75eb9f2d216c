"""Promptforge - expand short ideas into image prompts and track their generation."""

__version__ = "0.1.0"

from promptforge.core.config import PromptforgeConfig
from promptforge.core.models import GenerationRequest, RequestStatus, StatusUpdate
from promptforge.core.orchestrator import RequestOrchestrator, build_orchestrator

__all__ = [
    "GenerationRequest",
    "PromptforgeConfig",
    "RequestOrchestrator",
    "RequestStatus",
    "StatusUpdate",
    "build_orchestrator",
]
