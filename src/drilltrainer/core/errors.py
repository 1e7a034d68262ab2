"""Exception hierarchy for graph loading and session traversal.

``GraphError`` subclasses are raised while content is validated and mean the
graph must not be played.  ``EngineError`` subclasses signal caller misuse of
a session (a stale UI submitting a choice after the drill ended, an index the
node never offered).  Both derive from ``ValueError`` so callers that already
map ``ValueError`` to a client error keep working.
"""

from __future__ import annotations

__all__ = [
    "DanglingReference",
    "EngineError",
    "GraphError",
    "InvalidChoiceIndex",
    "MalformedNode",
    "SessionNotFinished",
    "SessionTerminated",
    "UnknownEntry",
]


class GraphError(ValueError):
    pass


class DanglingReference(GraphError):
    def __init__(self, node_id: str, choice_index: int, target: str) -> None:
        super().__init__(f"choice {choice_index} of node '{node_id}' points to unknown node '{target}'")
        self.node_id = node_id
        self.choice_index = choice_index
        self.target = target


class UnknownEntry(GraphError):
    def __init__(self, entry_id: str) -> None:
        super().__init__(f"entry node '{entry_id}' does not exist")
        self.entry_id = entry_id


class MalformedNode(GraphError):
    def __init__(self, node_id: str, reason: str) -> None:
        super().__init__(f"node '{node_id}' is malformed: {reason}")
        self.node_id = node_id
        self.reason = reason


class EngineError(ValueError):
    pass


class SessionTerminated(EngineError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"session already finished at '{node_id}'")
        self.node_id = node_id


class InvalidChoiceIndex(EngineError):
    def __init__(self, node_id: str, choice_index: object, available: int) -> None:
        super().__init__(f"choice index {choice_index!r} out of range for node '{node_id}' ({available} choices)")
        self.node_id = node_id
        self.choice_index = choice_index
        self.available = available


class SessionNotFinished(EngineError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"session still in progress at '{node_id}'")
        self.node_id = node_id
