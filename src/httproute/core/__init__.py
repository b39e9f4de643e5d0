"""
Transport: TCP accept loop and per-client request framing.
"""

from .connection import Connection
from .socket_server import SocketServer

__all__ = ["Connection", "SocketServer"]
