"""Promptforge: FastAPI REST API layer.

This package contains the FastAPI application factory and the Pydantic
request/response models.

Modules
-------
main
    ``create_app()`` factory with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
"""
