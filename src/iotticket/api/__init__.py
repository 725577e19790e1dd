"""IoT-Ticket API modules.

Classes:
    IoTTicketClient: Async facade exposing every API operation
    ClientConfig: Immutable base URL + Basic-auth credentials
    RequestBuilder: Builds authenticated HttpRequests for each operation

Functions:
    translate_error: Maps a non-2xx response to its ServerError subclass
"""
from .client import IoTTicketClient
from .config import ClientConfig
from .error_translator import translate_error
from .request_builder import RequestBuilder

__all__ = [
    "ClientConfig",
    "IoTTicketClient",
    "RequestBuilder",
    "translate_error",
]
