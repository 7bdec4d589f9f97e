"""
Public API Routes
Error ingest for client applications, plus health probes for load balancers
"""
from flask import Blueprint, request, jsonify, current_app

from app import limiter
from app.exceptions import InvalidInputError
from app.services.issue_actions import log_error_action

api_bp = Blueprint('api', __name__)

INGEST_FIELDS = ('level', 'stack', 'url', 'user_agent', 'user_id', 'tags', 'metadata', 'fingerprint')
TEXT_FIELDS = ('level', 'stack', 'url', 'user_agent', 'fingerprint')


def _ingest_rate_limit():
    return current_app.config.get('INGEST_RATE_LIMIT', '120 per minute')


def _parse_error_report(data) -> dict:
    """Validate an ingest body and turn it into log_error keyword arguments"""
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")

    for field in ('title', 'message'):
        if not isinstance(data.get(field), str):
            raise InvalidInputError(f"'{field}' is required", details={'field': field})

    for field in TEXT_FIELDS:
        if data.get(field) is not None and not isinstance(data[field], str):
            raise InvalidInputError(f"'{field}' must be a string", details={'field': field})

    tags = data.get('tags')
    if tags is not None and not isinstance(tags, list):
        raise InvalidInputError("'tags' must be a list", details={'field': 'tags'})

    metadata = data.get('metadata')
    if metadata is not None and not isinstance(metadata, dict):
        raise InvalidInputError("'metadata' must be an object", details={'field': 'metadata'})

    options = {field: data[field] for field in INGEST_FIELDS if data.get(field) is not None}
    if 'user_agent' not in options and request.user_agent.string:
        options['user_agent'] = request.user_agent.string
    return options


@api_bp.route('/errors', methods=['POST'])
@limiter.limit(_ingest_rate_limit)
def ingest_error():
    """
    Report an error occurrence.

    Body: {"title", "message", "level"?, "stack"?, "url"?, "user_agent"?,
           "user_id"?, "tags"?, "metadata"?, "fingerprint"?}

    Returns 201 with the ID of the issue the occurrence was grouped into.
    """
    data = request.get_json(silent=True)
    options = _parse_error_report(data)
    issue_id = log_error_action(data['title'], data['message'], **options)
    return jsonify({'issue_id': issue_id}), 201


# =============================================================================
# HEALTH CHECK ENDPOINTS (No auth required)
# =============================================================================

@api_bp.route('/health')
def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns JSON with:
    - status: 'healthy', 'degraded', or 'unhealthy'
    - timestamp: current UTC timestamp
    - dependencies: status of the database, cache and alert queue
    """
    from app.services.health import get_liveness_status, get_readiness_status

    quick_mode = request.args.get('quick', 'false').lower() == 'true'

    if quick_mode:
        health = get_liveness_status()
    else:
        health = get_readiness_status()

    status_code = 503 if health['status'] == 'unhealthy' else 200
    return jsonify(health), status_code


@api_bp.route('/health/live')
def liveness_check():
    """Liveness probe - quick check if app is running."""
    from app.services.health import get_liveness_status

    health = get_liveness_status()
    status_code = 503 if health['status'] == 'unhealthy' else 200
    return jsonify(health), status_code
