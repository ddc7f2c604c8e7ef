"""Relay server for form submissions (FastAPI)."""

from glimlach.server.app import create_app

__all__ = ["create_app"]
