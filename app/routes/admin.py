"""
Admin Routes
JSON API for triaging issues and managing notification settings
"""
from flask import Blueprint, request, jsonify

from app.exceptions import InvalidInputError, NotFoundError
from app.services.issue_actions import (
    get_issues_action, count_issues_action, get_issue_by_id_action,
    get_issue_events_action, update_issue_status_action, get_issue_stats_action,
    get_admin_settings_action, update_admin_settings_action,
)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/api/issues')
def list_issues():
    """
    List issues, most recently seen first.

    Query params: status, level, search, limit, offset
    """
    filters = {
        'status': request.args.get('status') or None,
        'level': request.args.get('level') or None,
        'search': request.args.get('search') or None,
    }
    limit = request.args.get('limit')
    offset = request.args.get('offset', 0)

    issues = get_issues_action(limit=limit, offset=offset, **filters)
    total = count_issues_action(**filters)

    return jsonify({
        'issues': [issue.to_dict() for issue in issues],
        'total': total,
    })


@admin_bp.route('/api/issues/stats')
def issue_stats():
    return jsonify(get_issue_stats_action())


@admin_bp.route('/api/issues/<int:issue_id>')
def issue_detail(issue_id):
    """Issue with its most recent occurrences"""
    issue = get_issue_by_id_action(issue_id)
    if issue is None:
        raise NotFoundError(f"Issue {issue_id} not found")

    data = issue.to_dict()
    data['events'] = [event.to_dict() for event in get_issue_events_action(issue_id)]
    return jsonify(data)


@admin_bp.route('/api/issues/<int:issue_id>/status', methods=['POST'])
def update_status(issue_id):
    """Move an issue to {"status": "open" | "resolved" | "closed"}"""
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if not isinstance(status, str) or not status:
        raise InvalidInputError("'status' is required", details={'field': 'status'})

    if not update_issue_status_action(issue_id, status):
        raise NotFoundError(f"Issue {issue_id} not found")

    return jsonify({'issue': get_issue_by_id_action(issue_id).to_dict()})


@admin_bp.route('/api/settings', methods=['GET', 'PUT'])
def settings():
    """Read or change notification settings; PUT may send either field"""
    if request.method == 'GET':
        return jsonify(get_admin_settings_action().to_dict())

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")

    current = get_admin_settings_action()
    enabled = data.get('email_notifications_enabled', current.email_notifications_enabled)
    level = data.get('notification_level', current.notification_level)
    if not isinstance(enabled, bool):
        raise InvalidInputError(
            "'email_notifications_enabled' must be a boolean",
            details={'field': 'email_notifications_enabled'}
        )

    return jsonify(update_admin_settings_action(enabled, level).to_dict())
