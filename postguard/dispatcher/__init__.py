"""
Dispatcher module: Outbound classifier calls.

Key exports:
- ModelClient: Async client for hosted classification endpoints
- get_model_client(): Get the global model client instance
"""

from postguard.dispatcher.handlers import (
    ModelClient,
    get_model_client,
)

__all__ = [
    "ModelClient",
    "get_model_client",
]
