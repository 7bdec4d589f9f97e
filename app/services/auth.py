"""
Authentication Service
Session login and the require_auth/require_admin guards used by admin actions
"""
import re
from typing import Optional

from flask import session, has_request_context

from app import db
from app.exceptions import AuthenticationError, AuthorizationError, InvalidInputError
from app.models import User, USER_ROLES, _utc_now_naive

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PASSWORD_MIN_LENGTH = 8


class AuthError(Exception):
    """Authentication error with user-friendly message"""
    pass


def get_user_by_id(user_id) -> Optional[User]:
    if user_id is None:
        return None
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


def get_current_user() -> Optional[User]:
    """Get the current logged-in user"""
    if has_request_context() and 'user_id' in session:
        return get_user_by_id(session['user_id'])
    return None


def create_user(email: str, password: str, name: str = None, role: str = 'user') -> User:
    """
    Create a user account.

    Raises:
        InvalidInputError: If validation fails or the email is taken
    """
    if not email or not EMAIL_PATTERN.match(email):
        raise InvalidInputError("Invalid email format", details={'field': 'email'})
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise InvalidInputError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            details={'field': 'password'}
        )
    if role not in USER_ROLES:
        raise InvalidInputError(f"Invalid role '{role}'", details={'field': 'role'})

    email = email.lower().strip()
    if User.query.filter_by(email=email).first():
        raise InvalidInputError("Email already registered", details={'field': 'email'})

    user = User(email=email, name=name, role=role, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        AuthError: On unknown email, wrong password or inactive account
    """
    if not email or not password:
        raise AuthError("Email and password are required")

    user = User.query.filter_by(email=email.lower().strip()).first()
    if not user or not user.check_password(password):
        raise AuthError("Invalid email or password")
    if not user.is_active:
        raise AuthError("Account is deactivated")

    user.last_login = _utc_now_naive()
    db.session.commit()
    return user


def require_auth() -> User:
    """
    Return the signed-in user.

    Raises:
        AuthenticationError: No session, or the session's user is gone/inactive
    """
    user = get_current_user()
    if not user or not user.is_active:
        raise AuthenticationError()
    return user


def require_admin() -> User:
    """
    Return the signed-in admin.

    Raises:
        AuthenticationError: Not signed in
        AuthorizationError: Signed in without the admin role
    """
    user = require_auth()
    if not user.is_admin:
        raise AuthorizationError()
    return user
