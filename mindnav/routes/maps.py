"""
Maps Blueprint - saved decision maps

Save captures the working canvas wholesale; load replaces it wholesale.
Database failures are reported as generic, recoverable errors and never touch
the working canvas.
"""

from flask import Blueprint, Response, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from mindnav.extensions import db
from mindnav.forms import SaveMapForm, first_error, request_formdata
from mindnav.services.canvas_store import Canvas, load_canvas, save_canvas
from mindnav.services.export import build_export, export_filename, render_export
from mindnav.services.map_store import MapLoadError, MapNotFound, delete_map, get_map, list_maps, load_map, save_map
from mindnav.services.subscriptions import is_premium

maps_bp = Blueprint('maps', __name__)


@maps_bp.errorhandler(SQLAlchemyError)
def _database_error(exc):
    db.session.rollback()
    current_app.logger.error('Canvas update failed for user %s: %s', current_user.id, exc, exc_info=True)
    return jsonify({'error': 'Failed to update canvas'}), 503


@maps_bp.route('/', methods=['GET'])
@login_required
def index():
    """Saved maps, most recently updated first"""
    try:
        records = list_maps(current_user.id)
    except Exception as exc:
        current_app.logger.error('Error loading maps for user %s: %s', current_user.id, exc, exc_info=True)
        return jsonify({'error': 'Failed to load saved maps'}), 503

    return jsonify({'maps': [record.to_summary() for record in records]})


@maps_bp.route('/', methods=['POST'])
@login_required
def save():
    """Save the working canvas; updates the current map when one is loaded"""
    form = SaveMapForm(formdata=request_formdata())
    if not form.validate_on_submit() or not (form.name.data or '').strip():
        return jsonify({'error': first_error(form) if form.errors else 'Please enter a map name'}), 400

    canvas = load_canvas(current_user.id)
    name = form.name.data.strip()
    explicit_id = form.map_id.data
    map_id = explicit_id if explicit_id is not None else canvas.map_id

    try:
        try:
            record = save_map(current_user.id, name, canvas.graph, map_id=map_id)
        except MapNotFound:
            if explicit_id is not None:
                return jsonify({'error': 'Map not found'}), 404
            # The loaded map was deleted elsewhere; save as a new one.
            map_id = None
            record = save_map(current_user.id, name, canvas.graph)
    except Exception as exc:
        current_app.logger.error('Error saving map for user %s: %s', current_user.id, exc, exc_info=True)
        return jsonify({'error': 'Failed to save map'}), 503

    canvas.map_id = record.id
    canvas.map_name = record.name
    save_canvas(current_user.id, canvas)
    return jsonify(record.to_summary()), 201 if map_id is None else 200


@maps_bp.route('/<int:map_id>', methods=['GET'])
@login_required
def detail(map_id):
    try:
        record = get_map(current_user.id, map_id)
    except MapNotFound:
        return jsonify({'error': 'Map not found'}), 404
    except Exception as exc:
        current_app.logger.error('Error fetching map %s: %s', map_id, exc, exc_info=True)
        return jsonify({'error': 'Failed to load map'}), 503
    return jsonify(record.to_dict())


@maps_bp.route('/<int:map_id>/load', methods=['POST'])
@login_required
def load(map_id):
    """Replace the working canvas with a saved map"""
    try:
        record, graph = load_map(current_user.id, map_id)
    except MapNotFound:
        return jsonify({'error': 'Map not found'}), 404
    except MapLoadError as exc:
        current_app.logger.warning('Stored map %s is malformed: %s', map_id, exc)
        return jsonify({'error': 'Failed to load map'}), 422
    except Exception as exc:
        current_app.logger.error('Error loading map %s: %s', map_id, exc, exc_info=True)
        return jsonify({'error': 'Failed to load map'}), 503

    canvas = Canvas(graph=graph, map_id=record.id, map_name=record.name)
    save_canvas(current_user.id, canvas)
    return jsonify(canvas.to_dict())


@maps_bp.route('/<int:map_id>', methods=['DELETE'])
@login_required
def delete(map_id):
    try:
        delete_map(current_user.id, map_id)
    except MapNotFound:
        return jsonify({'error': 'Map not found'}), 404
    except Exception as exc:
        current_app.logger.error('Error deleting map %s: %s', map_id, exc, exc_info=True)
        return jsonify({'error': 'Failed to delete map'}), 503

    canvas = load_canvas(current_user.id)
    if canvas.map_id == map_id:
        canvas.map_id = None
        save_canvas(current_user.id, canvas)
    return jsonify({'deleted': True})


@maps_bp.route('/export', methods=['GET'])
@login_required
def export():
    """Download the working canvas as JSON (premium)"""
    if not is_premium(current_user):
        return jsonify({'error': 'Export is a premium feature'}), 402

    canvas = load_canvas(current_user.id)
    document = build_export(canvas.map_name, canvas.graph)
    filename = export_filename(canvas.map_name)
    return Response(
        render_export(document),
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
