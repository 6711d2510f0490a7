"""Persistence of decision maps.

Saves capture the whole working graph; loads rebuild a fresh graph and only
hand it back once every record has been validated, so a failed load never
leaves a half-applied canvas behind.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from mindnav.domain.decision_graph import DecisionGraph, SnapshotError
from mindnav.extensions import db
from mindnav.models import DecisionMap
from mindnav.utils.db_resilience import with_db_resilience


class MapNotFound(LookupError):
    """The map does not exist or belongs to someone else."""


class MapLoadError(ValueError):
    """A stored map could not be turned back into a graph."""


@with_db_resilience(max_retries=2, backoff_ms=100)
def list_maps(user_id: int) -> list[DecisionMap]:
    return (
        DecisionMap.query
        .filter_by(user_id=user_id)
        .order_by(DecisionMap.updated_at.desc(), DecisionMap.id.desc())
        .all()
    )


@with_db_resilience(max_retries=2, backoff_ms=100)
def get_map(user_id: int, map_id: int) -> DecisionMap:
    record = DecisionMap.query.filter_by(id=map_id, user_id=user_id).first()
    if record is None:
        raise MapNotFound(map_id)
    return record


def save_map(user_id: int, name: str, graph: DecisionGraph, map_id: Optional[int] = None) -> DecisionMap:
    """Insert a new map or overwrite ``map_id`` with the graph's current state."""

    snapshot = graph.to_snapshot()
    if map_id is not None:
        record = get_map(user_id, map_id)
        record.name = name
        record.nodes = snapshot['nodes']
        record.connections = snapshot['connections']
        record.updated_at = datetime.utcnow()
    else:
        record = DecisionMap(
            user_id=user_id,
            name=name,
            nodes=snapshot['nodes'],
            connections=snapshot['connections'],
        )
        db.session.add(record)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return record


def load_map(user_id: int, map_id: int) -> tuple[DecisionMap, DecisionGraph]:
    record = get_map(user_id, map_id)
    try:
        graph = DecisionGraph.from_snapshot(record.nodes, record.connections)
    except SnapshotError as exc:
        raise MapLoadError(str(exc)) from exc
    return record, graph


def delete_map(user_id: int, map_id: int) -> None:
    record = get_map(user_id, map_id)
    db.session.delete(record)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
