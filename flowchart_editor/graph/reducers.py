"""Default reducer wiring for a graph store."""

from typing import TYPE_CHECKING

from .conditions import ConditionalBranchReducer, DestinationSyncReducer
from .events import EdgeAdded, EdgeRemoved, EdgeUpdated, NodeUpdated
from .start_node import StartNodeReducer
from .timing import ManualTimingReducer, TimingReducer

if TYPE_CHECKING:
    from .store import FlowGraphStore


def install_default_reducers(store: "FlowGraphStore") -> None:
    """Subscribe the editor's reducers to the store's dispatcher."""
    dispatcher = store.dispatcher

    dispatcher.subscribe(NodeUpdated, ConditionalBranchReducer(store))
    dispatcher.subscribe(NodeUpdated, DestinationSyncReducer(store))
    dispatcher.subscribe(NodeUpdated, ManualTimingReducer(store))

    dispatcher.subscribe_many((EdgeAdded, EdgeRemoved, EdgeUpdated), TimingReducer(store))

    dispatcher.subscribe_many(StartNodeReducer.handles, StartNodeReducer(store))
