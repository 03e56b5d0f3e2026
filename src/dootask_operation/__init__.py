"""dootask operation bridge library."""

from .exceptions import OperationError, OperationErrorCodes
from .gateway import ConnectionGateway, extract_token
from .manager import ConnectionManager
from .pending import PendingRequest, PendingRequestTable
from .registry import SessionRegistry
from .socket import ClientSocket, InMemoryClientSocket, WebsocketsClientSocket
from .tools import (
    ExecuteActionParams,
    ExecuteElementActionParams,
    GetPageContextParams,
    OperationTools,
)
from .types import (
    CLOSE_AUTH_FAILED,
    CLOSE_MISSING_TOKEN,
    ConnectionState,
    FrameType,
    Session,
)

__all__ = [
    "CLOSE_AUTH_FAILED",
    "CLOSE_MISSING_TOKEN",
    "ClientSocket",
    "ConnectionGateway",
    "ConnectionManager",
    "ConnectionState",
    "ExecuteActionParams",
    "ExecuteElementActionParams",
    "FrameType",
    "GetPageContextParams",
    "InMemoryClientSocket",
    "OperationError",
    "OperationErrorCodes",
    "OperationTools",
    "PendingRequest",
    "PendingRequestTable",
    "Session",
    "SessionRegistry",
    "WebsocketsClientSocket",
    "extract_token",
]
