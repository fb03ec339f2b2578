"""API middleware modules."""

from .security import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
]
