"""
Authentication Routes
JSON session login and logout for the admin API
"""
import logging

from flask import Blueprint, request, session, jsonify

from app import limiter
from app.exceptions import AuthenticationError
from app.services.auth import authenticate, AuthError

logger = logging.getLogger('issuedesk')

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Sign in with {"email", "password"}"""
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')

    try:
        user = authenticate(email, password)
    except AuthError as e:
        logger.warning(f"Failed login for {email or '<blank>'}: {e}")
        raise AuthenticationError(str(e))

    session.clear()
    session.permanent = True
    session['user_id'] = user.id
    logger.info(f"User #{user.id} signed in")
    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Clear the session"""
    session.clear()
    return jsonify({'success': True})
