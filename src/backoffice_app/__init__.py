"""Viomar back-office JSON API."""

from .app import create_app

__all__ = ["create_app"]
