"""
Application package initializer.

The service is organised into a few small layers: ``core`` holds
configuration, logging, database helpers and the error taxonomy;
``schemas`` holds the pydantic payload models; ``storage`` holds the
interchangeable backing stores; ``services`` wraps a store with logging
and error context; ``api`` exposes the HTTP routes.
"""

from .main import app, create_app  # noqa: F401
