"""
loyaltyhub/auth/decorators.py
-----------------------------
Route-protection decorators for the JSON API.
Usage:
    from loyaltyhub.auth.decorators import login_required

    @auth.route('/me')
    @login_required
    def me():
        ...
"""
from functools import wraps
from flask import session

from loyaltyhub.errors import AuthenticationError, PermissionDenied


def login_required(f):
    """401 JSON when there is no 'user_id' in the Flask session."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if 'user_id' not in session:
            raise AuthenticationError('Authentication required')
        return f(*args, **kwargs)
    return decorated


def business_member_required(f):
    """
    For routes taking a <business_id>: only admins and the business's own
    manager/staff get through. Implies login_required.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        if 'user_id' not in session:
            raise AuthenticationError('Authentication required')
        if session.get('role') != 'admin' and session.get('business_id') != kwargs.get('business_id'):
            raise PermissionDenied('You do not have access to this business')
        return f(*args, **kwargs)
    return decorated
