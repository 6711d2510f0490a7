from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from slugify import slugify

from mindnav.domain.decision_graph import DecisionGraph

FALLBACK_FILENAME = 'decision-map'


def build_export(name: str, graph: DecisionGraph, exported_at: Optional[datetime] = None) -> dict[str, Any]:
    """Standalone snapshot of a map: ``{name, nodes, edges, exportedAt}``.

    The document carries no version field; treat it as a snapshot, not a contract.
    """

    snapshot = graph.to_snapshot()
    moment = exported_at or datetime.now(timezone.utc)
    return {
        'name': name,
        'nodes': snapshot['nodes'],
        'edges': snapshot['connections'],
        'exportedAt': moment.isoformat(),
    }


def export_filename(name: str) -> str:
    stem = slugify(name or '', lowercase=False) or FALLBACK_FILENAME
    return f'{stem}.json'


def render_export(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2)
