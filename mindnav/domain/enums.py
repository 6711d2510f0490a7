from __future__ import annotations


class NodeKind:
    """Kinds of node that can be placed on the canvas."""

    DECISION = 'decision'
    FACTOR = 'factor'

    ALL = (DECISION, FACTOR)


DEFAULT_TEXT: dict[str, str] = {
    NodeKind.DECISION: 'New Decision',
    NodeKind.FACTOR: 'New Factor',
}

# ---- Factor weight bounds (inclusive) ----
WEIGHT_MIN = -10
WEIGHT_MAX = 10
DEFAULT_FACTOR_WEIGHT = 0

# ---- Spawn region for freshly added nodes ----
SPAWN_ORIGIN = 100.0
SPAWN_SPREAD = 200.0

DEFAULT_MAP_NAME = 'Untitled Map'
