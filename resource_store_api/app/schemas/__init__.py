"""
Pydantic schema definitions for API payloads.

Schemas are separated from the storage layer so that the wire
representation of a resource does not depend on the backend in use.
"""
