"""Client side of Prodex sync: transport, state machines, tombstones, local store."""

from prodex.sync.client import FullSyncResponse, ProdexApiError, ProdexClient
from prodex.sync.state import GroupState, GroupStateMachine, InvalidTransitionError, SyncEvent
from prodex.sync.store import DataStore, SyncGroup
from prodex.sync.tombstones import Tombstone, TombstoneFileStore, TombstoneTable

__all__ = [
    "DataStore",
    "FullSyncResponse",
    "GroupState",
    "GroupStateMachine",
    "InvalidTransitionError",
    "ProdexApiError",
    "ProdexClient",
    "SyncEvent",
    "SyncGroup",
    "Tombstone",
    "TombstoneFileStore",
    "TombstoneTable",
]
