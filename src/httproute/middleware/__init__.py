"""
Middleware: named or inline gates that run before a route's handler.

Each middleware returns None to let the request through or an HTTPResponse
to answer in the handler's place. See base.py for the full contract.
"""

from .base import (
    MiddlewareFunc,
    MiddlewareRef,
    MiddlewareRegistry,
    MiddlewareSpec,
    run_chain,
)

__all__ = [
    "MiddlewareFunc",
    "MiddlewareRef",
    "MiddlewareRegistry",
    "MiddlewareSpec",
    "run_chain",
]
