"""
Web package for the DNS resolver.

Provides a JSON API exposing the resolver operations over HTTP.
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
