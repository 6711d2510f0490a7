"""Decision graph model.

A flat, mutable collection of decision and factor nodes joined by directed
decision -> factor edges. Nodes live in an insertion-ordered dict keyed by id and
edges in a second dict keyed by ``(source, target)``, so edges only ever hold ids.

Malformed operations (unknown ids, incompatible kinds, duplicate edges) are
silent no-ops. The only error raised here is :class:`SnapshotError`, and only
when importing a persisted snapshot that cannot be trusted.
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .enums import (
    DEFAULT_FACTOR_WEIGHT,
    DEFAULT_TEXT,
    SPAWN_ORIGIN,
    SPAWN_SPREAD,
    WEIGHT_MAX,
    WEIGHT_MIN,
    NodeKind,
)


class SnapshotError(ValueError):
    """Raised when a persisted node/edge snapshot is malformed."""


@dataclass
class Node:
    id: str
    kind: str
    text: str
    x: float
    y: float
    weight: Optional[int] = None

    @property
    def is_decision(self) -> bool:
        return self.kind == NodeKind.DECISION

    @property
    def is_factor(self) -> bool:
        return self.kind == NodeKind.FACTOR

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'id': self.id,
            'type': self.kind,
            'text': self.text,
            'x': self.x,
            'y': self.y,
        }
        if self.is_factor:
            data['weight'] = self.weight
        return data


@dataclass(frozen=True)
class Edge:
    source: str
    target: str

    def to_dict(self) -> dict[str, str]:
        return {'from': self.source, 'to': self.target}


@dataclass(frozen=True)
class DecisionAnalysis:
    decision: Node
    score: int
    factors: list[Node]
    positive_factors: list[Node]
    negative_factors: list[Node]

    @property
    def factor_count(self) -> int:
        return len(self.factors)


def clamp_weight(value: Any) -> Optional[int]:
    """Coerce a user-supplied weight into the -10..+10 integer range.

    Returns None when the value is not numeric.
    """

    if isinstance(value, bool):
        return None
    try:
        weight = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(WEIGHT_MIN, min(WEIGHT_MAX, weight))


def _coerce_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        coordinate = float(value)
    except (TypeError, ValueError):
        return None
    # inf/nan cannot be written back out as JSON.
    return coordinate if math.isfinite(coordinate) else None


class DecisionGraph:
    """Mutable decision/factor graph with weighted-sum scoring."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._nodes: dict[str, Node] = {}
        self._edges: dict[tuple[str, str], Edge] = {}
        self._rng = rng or random.Random()

    # ---- Read access ----

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def get(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    # ---- Mutations ----

    def add_node(self, kind: str, text: Optional[str] = None) -> Node:
        if kind not in NodeKind.ALL:
            raise ValueError(f'Unknown node kind: {kind!r}')

        node_id = f'{kind}-{uuid.uuid4().hex[:12]}'
        while node_id in self._nodes:
            node_id = f'{kind}-{uuid.uuid4().hex[:12]}'

        node = Node(
            id=node_id,
            kind=kind,
            text=text if text else DEFAULT_TEXT[kind],
            x=SPAWN_ORIGIN + self._rng.random() * SPAWN_SPREAD,
            y=SPAWN_ORIGIN + self._rng.random() * SPAWN_SPREAD,
            weight=DEFAULT_FACTOR_WEIGHT if kind == NodeKind.FACTOR else None,
        )
        self._nodes[node.id] = node
        return node

    def update_node(self, node_id: str, fields: Mapping[str, Any]) -> Optional[Node]:
        """Merge ``text``/``weight``/``x``/``y`` into a node. Unknown ids are ignored."""

        node = self._nodes.get(node_id)
        if node is None:
            return None

        if 'text' in fields and fields['text'] is not None:
            node.text = str(fields['text'])

        if 'weight' in fields and node.is_factor:
            weight = clamp_weight(fields['weight'])
            if weight is not None:
                node.weight = weight

        for axis in ('x', 'y'):
            if axis in fields:
                value = _coerce_coordinate(fields[axis])
                if value is not None:
                    setattr(node, axis, value)

        return node

    def delete_node(self, node_id: str) -> bool:
        if self._nodes.pop(node_id, None) is None:
            return False
        for key in [k for k in self._edges if node_id in k]:
            del self._edges[key]
        return True

    def connect(self, source_id: Optional[str], target_id: Optional[str]) -> bool:
        """Add a decision -> factor edge. Returns False when nothing was added."""

        if not source_id or not target_id or source_id == target_id:
            return False

        source = self._nodes.get(source_id)
        target = self._nodes.get(target_id)
        if source is None or target is None:
            return False
        if not source.is_decision or not target.is_factor:
            return False

        key = (source_id, target_id)
        if key in self._edges:
            return False

        self._edges[key] = Edge(source_id, target_id)
        return True

    def disconnect(self, source_id: str, target_id: str) -> bool:
        return self._edges.pop((source_id, target_id), None) is not None

    # ---- Scoring ----

    def connected_factors(self, decision_id: str) -> list[Node]:
        """Factors reachable by one outgoing edge, in edge-insertion order."""

        factors = []
        for edge in self._edges.values():
            if edge.source != decision_id:
                continue
            node = self._nodes.get(edge.target)
            if node is not None and node.is_factor:
                factors.append(node)
        return factors

    def score(self, decision_id: str) -> int:
        return sum(node.weight or 0 for node in self.connected_factors(decision_id))

    def scores(self) -> dict[str, int]:
        return {node.id: self.score(node.id) for node in self._nodes.values() if node.is_decision}

    def analyze(self, decision_id: str) -> Optional[DecisionAnalysis]:
        decision = self._nodes.get(decision_id)
        if decision is None or not decision.is_decision:
            return None

        factors = self.connected_factors(decision_id)
        return DecisionAnalysis(
            decision=decision,
            score=sum(node.weight or 0 for node in factors),
            factors=factors,
            positive_factors=[node for node in factors if (node.weight or 0) > 0],
            negative_factors=[node for node in factors if (node.weight or 0) < 0],
        )

    # ---- Snapshots ----

    def to_snapshot(self) -> dict[str, list[dict[str, Any]]]:
        return {
            'nodes': [node.to_dict() for node in self._nodes.values()],
            'connections': [edge.to_dict() for edge in self._edges.values()],
        }

    @classmethod
    def from_snapshot(
        cls,
        nodes: Any,
        connections: Any,
        rng: Optional[random.Random] = None,
    ) -> 'DecisionGraph':
        """Build a new graph from persisted lists.

        Every record is validated before the graph is assembled, so a caller
        either gets a complete graph or a :class:`SnapshotError`.
        """

        parsed_nodes = list(_parse_nodes(nodes))
        parsed_edges = list(_parse_edges(connections))

        graph = cls(rng=rng)
        for node in parsed_nodes:
            if node.id in graph._nodes:
                raise SnapshotError(f'Duplicate node id: {node.id}')
            graph._nodes[node.id] = node

        # Edges that break the kind invariant are dropped, same as connect().
        for source, target in parsed_edges:
            graph.connect(source, target)

        return graph


def _parse_nodes(raw: Any) -> Iterable[Node]:
    if not isinstance(raw, list):
        raise SnapshotError('nodes must be a list')

    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise SnapshotError(f'node #{index} is not an object')

        node_id = item.get('id')
        if not isinstance(node_id, str) or not node_id:
            raise SnapshotError(f'node #{index} has no id')

        kind = item.get('type')
        if kind not in NodeKind.ALL:
            raise SnapshotError(f'node {node_id} has unknown type {kind!r}')

        x = _coerce_coordinate(item.get('x'))
        y = _coerce_coordinate(item.get('y'))
        if x is None or y is None:
            raise SnapshotError(f'node {node_id} has an invalid position')

        weight = None
        if kind == NodeKind.FACTOR:
            raw_weight = item.get('weight')
            if raw_weight is not None:
                weight = clamp_weight(raw_weight)
                if weight is None:
                    raise SnapshotError(f'node {node_id} has a non-numeric weight')

        text = item.get('text')
        yield Node(
            id=node_id,
            kind=kind,
            text='' if text is None else str(text),
            x=x,
            y=y,
            weight=weight,
        )


def _parse_edges(raw: Any) -> Iterable[tuple[str, str]]:
    if raw is None:
        return
    if not isinstance(raw, list):
        raise SnapshotError('connections must be a list')

    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise SnapshotError(f'connection #{index} is not an object')
        source = item.get('from')
        target = item.get('to')
        if not isinstance(source, str) or not isinstance(target, str):
            raise SnapshotError(f'connection #{index} must reference node ids')
        yield source, target


@dataclass
class ConnectionState:
    """Single-slot "connecting mode" state.

    Holds the decision the user clicked "connect" on while waiting for the
    target click. Cleared after every completion attempt.
    """

    pending_source: Optional[str] = None

    def start(self, source_id: str) -> None:
        self.pending_source = source_id

    def cancel(self) -> None:
        self.pending_source = None

    def complete(self, graph: DecisionGraph, target_id: str) -> bool:
        source_id, self.pending_source = self.pending_source, None
        return graph.connect(source_id, target_id)
