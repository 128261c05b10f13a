"""Image Relay — FastAPI REST API layer.

This package contains the FastAPI application, the Pydantic request and
response models, and the rate limiter.

Modules
-------
main
    FastAPI application with the route handlers, exception handlers and the
    ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
rate_limit
    slowapi limiter and the 429 response it produces.
"""
