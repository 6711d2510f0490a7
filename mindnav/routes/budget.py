"""
Budget Blueprint - savings goals shown next to the canvas
"""

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from mindnav.extensions import db
from mindnav.forms import BudgetGoalForm, ContributionForm, first_error, request_formdata
from mindnav.models import BudgetGoal
from mindnav.utils.db_resilience import with_db_resilience

budget_bp = Blueprint('budget', __name__)


@with_db_resilience(max_retries=2, backoff_ms=100)
def _user_goals(user_id):
    return (
        BudgetGoal.query
        .filter_by(user_id=user_id)
        .order_by(BudgetGoal.created_at.desc(), BudgetGoal.id.desc())
        .all()
    )


def _owned_goal(goal_id):
    return BudgetGoal.query.filter_by(id=goal_id, user_id=current_user.id).first()


@budget_bp.route('/goals', methods=['GET'])
@login_required
def goals():
    try:
        records = _user_goals(current_user.id)
    except Exception as exc:
        current_app.logger.error('Error loading goals: %s', exc, exc_info=True)
        return jsonify({'error': 'Failed to load goals'}), 503
    return jsonify({'goals': [goal.to_dict() for goal in records]})


@budget_bp.route('/goals', methods=['POST'])
@login_required
def create_goal():
    form = BudgetGoalForm(formdata=request_formdata())
    if not form.validate_on_submit() or not (form.goal_name.data or '').strip():
        return jsonify({'error': first_error(form) if form.errors else 'Please enter goal name and target amount'}), 400

    goal = BudgetGoal(
        user_id=current_user.id,
        goal_name=form.goal_name.data.strip(),
        target_amount=form.target_amount.data,
        current_saved=0,
    )
    try:
        db.session.add(goal)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error('Error creating goal: %s', exc, exc_info=True)
        return jsonify({'error': 'Failed to create goal'}), 503
    return jsonify(goal.to_dict()), 201


@budget_bp.route('/goals/<int:goal_id>/contributions', methods=['POST'])
@login_required
def add_contribution(goal_id):
    form = ContributionForm(formdata=request_formdata())
    if not form.validate_on_submit():
        return jsonify({'error': first_error(form)}), 400

    goal = _owned_goal(goal_id)
    if goal is None:
        return jsonify({'error': 'Goal not found'}), 404

    try:
        goal.current_saved = (goal.current_saved or 0) + form.amount.data
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error('Error adding contribution to goal %s: %s', goal_id, exc, exc_info=True)
        return jsonify({'error': 'Failed to add contribution'}), 503
    return jsonify(goal.to_dict())


@budget_bp.route('/goals/<int:goal_id>', methods=['DELETE'])
@login_required
def delete_goal(goal_id):
    goal = _owned_goal(goal_id)
    if goal is None:
        return jsonify({'error': 'Goal not found'}), 404

    try:
        db.session.delete(goal)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error('Error deleting goal %s: %s', goal_id, exc, exc_info=True)
        return jsonify({'error': 'Failed to delete goal'}), 503
    return jsonify({'deleted': True})
