from flask import current_app, session

from loyaltyhub.auth import auth
from loyaltyhub.auth import service
from loyaltyhub.auth.decorators import login_required
from loyaltyhub.errors import AuthenticationError, ValidationError
from loyaltyhub.utils.request_helpers import json_body, require_fields, success


@auth.route('/register', methods=['POST'])
def register():
    data = json_body()
    user = service.register_user(
        data.get('email'), data.get('password'),
        role=data.get('role') or 'customer',
        first_name=data.get('first_name'),
        last_name=data.get('last_name'),
        business_name=data.get('business_name'),
        phone=data.get('phone'),
        address=data.get('address'),
        business_id=data.get('business_id'),
    )
    return success(201, message='User registered successfully', user=service.user_profile(user))


@auth.route('/login', methods=['POST'])
def login():
    """Validate credentials and populate the session."""
    data = json_body()
    errors = require_fields(data, [('email', 'Email is required'),
                                   ('password', 'Password is required')])
    if errors:
        raise ValidationError('Email and password are required', errors=errors)
    if not isinstance(data['email'], str) or not isinstance(data['password'], str):
        raise ValidationError('Email and password must be strings')

    user = service.authenticate_user(data['email'], data['password'])
    if user is None:
        # Deliberately vague: don't reveal which field was wrong
        raise AuthenticationError('Invalid credentials')

    # ── Populate session (only what's needed) ──
    session.clear()
    session['user_id']     = user.id
    session['role']        = user.role.value
    session['business_id'] = user.business_id
    session.permanent      = True             # respect PERMANENT_SESSION_LIFETIME

    current_app.logger.info("User %s logged in", user.email)
    return success(message='Login successful', user=service.user_profile(user))


@auth.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return success(message='Logged out')


@auth.route('/me', methods=['GET'])
@login_required
def me():
    user = service.current_user()
    if user is None:
        session.clear()
        raise AuthenticationError('Authentication required')
    return success(user=service.user_profile(user))


@auth.route('/me', methods=['PUT'])
@login_required
def update_me():
    user = service.update_user(session['user_id'], json_body())
    return success(message='Profile updated successfully', user=service.user_profile(user))


@auth.route('/change_password', methods=['POST'])
@login_required
def change_password():
    data = json_body()
    service.change_password(session['user_id'], data.get('current_password'), data.get('new_password'))
    return success(message='Password changed successfully')
