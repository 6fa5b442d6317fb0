"""Serverless entrypoint: exposes the ASGI app for the platform runtime."""

from app.main import app

__all__ = ["app"]
