"""
Service layer.

``ResourceService`` sits between the HTTP handlers and whichever store
was configured at startup.  Handlers never talk to a store directly.
"""
