"""Shared document synchronization."""

from .gateway import (
    HostAuthorityError,
    HostChannel,
    NotAPlayerError,
    PlayerChannel,
    RoomGateway,
    RoomNotFoundError,
)
from .store import (
    SERVER_TIMESTAMP,
    ArrayUnion,
    DocumentNotFoundError,
    DocumentStore,
    Increment,
    InMemoryDocumentStore,
    StoreError,
)

__all__ = [
    "ArrayUnion",
    "DocumentNotFoundError",
    "DocumentStore",
    "HostAuthorityError",
    "HostChannel",
    "Increment",
    "InMemoryDocumentStore",
    "NotAPlayerError",
    "PlayerChannel",
    "RoomGateway",
    "RoomNotFoundError",
    "SERVER_TIMESTAMP",
    "StoreError",
]
