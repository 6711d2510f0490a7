"""Working canvas kept server-side, one draft row per user.

Each request rebuilds the graph from the user's draft, applies a single
operation and writes the snapshot back. Saved maps are separate records; the
draft is only the user's current, unsaved working copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from flask import current_app

from mindnav.domain.decision_graph import ConnectionState, DecisionGraph, SnapshotError
from mindnav.domain.enums import DEFAULT_MAP_NAME
from mindnav.extensions import db
from mindnav.models import CanvasDraft
from mindnav.utils.db_resilience import with_db_resilience


@dataclass
class Canvas:
    graph: DecisionGraph = field(default_factory=DecisionGraph)
    connecting: ConnectionState = field(default_factory=ConnectionState)
    map_id: Optional[int] = None
    map_name: str = DEFAULT_MAP_NAME

    def delete_node(self, node_id: str) -> bool:
        removed = self.graph.delete_node(node_id)
        if removed and self.connecting.pending_source == node_id:
            self.connecting.cancel()
        return removed

    def to_dict(self) -> dict[str, Any]:
        snapshot = self.graph.to_snapshot()
        return {
            'map_id': self.map_id,
            'map_name': self.map_name,
            'nodes': snapshot['nodes'],
            'connections': snapshot['connections'],
            'pending_source': self.connecting.pending_source,
            'scores': self.graph.scores(),
        }


@with_db_resilience(max_retries=2, backoff_ms=100)
def _find_draft(user_id: int) -> Optional[CanvasDraft]:
    return CanvasDraft.query.filter_by(user_id=user_id).first()


def load_canvas(user_id: int) -> Canvas:
    draft = _find_draft(user_id)
    if draft is None:
        return Canvas()

    try:
        graph = DecisionGraph.from_snapshot(draft.nodes, draft.connections)
    except SnapshotError as exc:
        current_app.logger.warning('Discarding unreadable canvas draft for user %s: %s', user_id, exc)
        return Canvas()

    return Canvas(
        graph=graph,
        connecting=ConnectionState(pending_source=draft.pending_source),
        map_id=draft.map_id,
        map_name=draft.map_name or DEFAULT_MAP_NAME,
    )


def save_canvas(user_id: int, canvas: Canvas) -> None:
    draft = _find_draft(user_id)
    if draft is None:
        draft = CanvasDraft(user_id=user_id)
        db.session.add(draft)

    snapshot = canvas.graph.to_snapshot()
    draft.nodes = snapshot['nodes']
    draft.connections = snapshot['connections']
    draft.pending_source = canvas.connecting.pending_source
    draft.map_id = canvas.map_id
    draft.map_name = canvas.map_name
    draft.updated_at = datetime.utcnow()

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def clear_canvas(user_id: int) -> None:
    CanvasDraft.query.filter_by(user_id=user_id).delete()
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
