"""Command-line entry points."""

from .main import app, main

__all__ = ['app', 'main']
