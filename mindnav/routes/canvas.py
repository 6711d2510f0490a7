"""
Canvas Blueprint - the working decision graph

Every endpoint loads the user's draft canvas from the database, applies one
graph operation and stores it again. Operations the graph treats as no-ops
(unknown ids, incompatible connections) still answer 200 with the current state.
A database failure answers 503 and leaves the stored draft as it was.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from mindnav.domain.enums import NodeKind
from mindnav.extensions import db
from mindnav.services.canvas_store import Canvas, clear_canvas, load_canvas, save_canvas
from mindnav.services.subscriptions import is_premium

canvas_bp = Blueprint('canvas', __name__)


@canvas_bp.errorhandler(SQLAlchemyError)
def _database_error(exc):
    db.session.rollback()
    current_app.logger.error('Canvas update failed for user %s: %s', current_user.id, exc, exc_info=True)
    return jsonify({'error': 'Failed to update canvas'}), 503


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _node_ref(value):
    return value if isinstance(value, str) and value else None


def _state(canvas, status=200, **extra):
    payload = canvas.to_dict()
    payload.update(extra)
    return jsonify(payload), status


@canvas_bp.route('/', methods=['GET'])
@login_required
def state():
    """Current working canvas with per-decision scores"""
    return _state(load_canvas(current_user.id))


@canvas_bp.route('/reset', methods=['POST'])
@login_required
def reset():
    """Start a fresh, untitled canvas"""
    clear_canvas(current_user.id)
    return _state(Canvas())


@canvas_bp.route('/nodes', methods=['POST'])
@login_required
def add_node():
    data = _json_body()
    kind = data.get('type')
    if kind not in NodeKind.ALL:
        return jsonify({'error': f"type must be one of: {', '.join(NodeKind.ALL)}"}), 400

    text = data.get('text')
    canvas = load_canvas(current_user.id)
    node = canvas.graph.add_node(kind, str(text) if text else None)
    save_canvas(current_user.id, canvas)
    return jsonify(node.to_dict()), 201


@canvas_bp.route('/nodes/<node_id>', methods=['PATCH'])
@login_required
def update_node(node_id):
    canvas = load_canvas(current_user.id)
    node = canvas.graph.update_node(node_id, _json_body())
    save_canvas(current_user.id, canvas)
    return _state(canvas, node=node.to_dict() if node else None)


@canvas_bp.route('/nodes/<node_id>', methods=['DELETE'])
@login_required
def delete_node(node_id):
    canvas = load_canvas(current_user.id)
    deleted = canvas.delete_node(node_id)
    save_canvas(current_user.id, canvas)
    return _state(canvas, deleted=deleted)


@canvas_bp.route('/connections/start', methods=['POST'])
@login_required
def start_connection():
    """Remember the node the user clicked "connect" on"""
    source_id = _node_ref(_json_body().get('source_id'))
    if source_id is None:
        return jsonify({'error': 'source_id is required'}), 400

    canvas = load_canvas(current_user.id)
    canvas.connecting.start(source_id)
    save_canvas(current_user.id, canvas)
    return _state(canvas)


@canvas_bp.route('/connections/complete', methods=['POST'])
@login_required
def complete_connection():
    """Connect the pending source to the clicked target, then leave connecting mode"""
    target_id = _json_body().get('target_id')
    canvas = load_canvas(current_user.id)
    connected = canvas.connecting.complete(canvas.graph, _node_ref(target_id))
    save_canvas(current_user.id, canvas)
    return _state(canvas, connected=connected)


@canvas_bp.route('/connections/cancel', methods=['POST'])
@login_required
def cancel_connection():
    canvas = load_canvas(current_user.id)
    canvas.connecting.cancel()
    save_canvas(current_user.id, canvas)
    return _state(canvas)


@canvas_bp.route('/connections', methods=['POST'])
@login_required
def connect():
    data = _json_body()
    canvas = load_canvas(current_user.id)
    connected = canvas.graph.connect(_node_ref(data.get('from')), _node_ref(data.get('to')))
    save_canvas(current_user.id, canvas)
    return _state(canvas, connected=connected)


@canvas_bp.route('/connections', methods=['DELETE'])
@login_required
def disconnect():
    data = _json_body()
    canvas = load_canvas(current_user.id)
    removed = canvas.graph.disconnect(_node_ref(data.get('from')), _node_ref(data.get('to')))
    save_canvas(current_user.id, canvas)
    return _state(canvas, disconnected=removed)


@canvas_bp.route('/decisions/<node_id>/analysis', methods=['GET'])
@login_required
def analysis(node_id):
    """Score for a decision; the factor breakdown is a premium feature"""
    canvas = load_canvas(current_user.id)
    result = canvas.graph.analyze(node_id)
    if result is None:
        return jsonify({'error': 'Decision not found'}), 404

    payload = {
        'decision': result.decision.to_dict(),
        'score': result.score,
        'factor_count': result.factor_count,
    }
    if is_premium(current_user):
        payload.update({
            'locked': False,
            'positive_factors': [node.to_dict() for node in result.positive_factors],
            'negative_factors': [node.to_dict() for node in result.negative_factors],
        })
    else:
        payload['locked'] = True
    return jsonify(payload)
