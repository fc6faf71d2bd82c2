"""websession - server-side session management core.

Subpackages:
    core           configuration and exceptions
    models         session entity, identifiers and attribute value types
    sessions       store contract, backends and the session service
    observability  structured logging and metrics
"""

__version__ = "0.1.0"

__all__ = ["core", "models", "sessions", "observability"]
