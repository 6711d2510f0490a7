"""
Help Blueprint - help overlay content and the first-run flag
"""

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from mindnav.extensions import db

help_bp = Blueprint('help', __name__)

HELP_SECTIONS = [
    {
        'title': 'Getting Started',
        'body': (
            'Mind Navigator helps you weigh a decision. Add decisions and factors to the canvas, '
            'connect each decision to the factors that influence it and read its score.'
        ),
    },
    {
        'title': 'Basic Actions',
        'items': [
            {'action': 'Add nodes', 'detail': 'Use "+ Decision" or "+ Factor" to place a new node on the canvas.'},
            {'action': 'Connect', 'detail': 'Click "Connect" on a decision, then click a factor to link them.'},
            {'action': 'Move', 'detail': 'Drag a node to reposition it anywhere on the canvas.'},
            {'action': 'Delete', 'detail': 'Deleting a node also removes every connection attached to it.'},
            {'action': 'Save', 'detail': 'Save your map by name and load it again later.'},
            {'action': 'Analyze', 'detail': 'Double-click a decision to see its score and factor breakdown.'},
        ],
    },
    {
        'title': 'Node Types',
        'items': [
            {'action': 'Decision', 'detail': 'A choice you need to make. Its score is the sum of its factor weights.'},
            {'action': 'Factor', 'detail': 'An influence on a decision, weighted from -10 to +10.'},
        ],
    },
    {
        'title': 'Pro Tips',
        'items': [
            {'detail': 'Positive weights argue for a decision and negative weights argue against it.'},
            {'detail': 'A factor can be connected to several decisions at once.'},
            {'detail': 'Premium unlocks the positive/negative breakdown and JSON export.'},
            {'detail': 'Track savings toward a decision with the budget goals panel.'},
        ],
    },
]


@help_bp.route('/', methods=['GET'])
def content():
    return jsonify({'sections': HELP_SECTIONS})


@help_bp.route('/first-run', methods=['GET'])
@login_required
def first_run():
    """True exactly once per account: the client opens the help overlay on first visit"""
    if current_user.has_seen_help:
        return jsonify({'show': False})

    try:
        current_user.has_seen_help = True
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error('Failed to record first visit for user %s: %s', current_user.id, exc, exc_info=True)
    return jsonify({'show': True})
