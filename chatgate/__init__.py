"""HTTP gateway, status service, session framing and Redis helpers for a chat backend."""

__version__ = "0.1.0"