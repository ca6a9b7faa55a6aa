# auth.py
# Session login/logout and the admin role gate.
import logging

from flask import (Blueprint, flash, g, jsonify, redirect, render_template_string,
                   request, session, url_for)

import users
from errors import AuthenticationError, PermissionDenied, ValidationError

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)


def current_user():
    """The logged-in, still active user for this request, or None."""
    if 'current_user' not in g:
        user = None
        user_id = session.get('user_id')
        if user_id is not None:
            user = users.get_user_by_id(user_id)
            if user is None or user['status'] != 'active':
                session.pop('user_id', None)
                user = None
        g.current_user = user
    return g.current_user


def admin_gate(api):
    """before_request hook for admin blueprints: 401/403 for the API, redirect for pages."""
    user = current_user()
    if user is not None and user['role'] == 'admin':
        return None

    logger.warning('Admin access denied', extra={
        'path': request.path,
        'user_id': user['id'] if user else None,
    })
    if not api:
        return redirect(url_for('auth.login_page', next=request.path))
    if user is None:
        raise AuthenticationError('Authentication required')
    raise PermissionDenied('Admin privileges required')


def _login(email, password):
    user = users.login_user(email, password)
    if user is None:
        logger.warning('Login failed', extra={'email': email})
        return None
    session.clear()
    session['user_id'] = user['id']
    g.current_user = user
    logger.info('Login succeeded', extra={'user_id': user['id']})
    return user


# ---- JSON API ----
@bp.route('/api/auth/login', methods=['POST'])
def api_login():
    body = request.get_json(silent=True) or {}
    email = (body.get('email') or '').strip()
    password = body.get('password') or ''
    if not email or not password:
        raise ValidationError('Email and password are required')

    user = _login(email, password)
    if user is None:
        raise AuthenticationError('Invalid credentials')
    return jsonify({'success': True, 'data': {'user': user}})


@bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    session.clear()
    if request.is_json:
        return jsonify({'success': True})
    return redirect(url_for('auth.login_page'))


@bp.route('/api/auth/me')
def api_me():
    user = current_user()
    if user is None:
        raise AuthenticationError('Not logged in')
    return jsonify({'success': True, 'data': {'user': user}})


# ---- Login page ----
LOGIN_TEMPLATE = """
<!doctype html>
<title>Admin login</title>
<h1>Admin login</h1>
{% with messages = get_flashed_messages() %}
  {% for m in messages %}<p style="color:#c00">{{ m }}</p>{% endfor %}
{% endwith %}
<form method="post">
  <input type="hidden" name="next" value="{{ next }}">
  <p><input type="email" name="email" placeholder="email" required></p>
  <p><input type="password" name="password" placeholder="password" required></p>
  <p><button type="submit">Log in</button></p>
</form>
"""


@bp.route('/admin/login', methods=['GET', 'POST'])
def login_page():
    next_url = request.values.get('next') or url_for('admin.dashboard')
    # only local redirects
    if not next_url.startswith('/') or next_url.startswith('//'):
        next_url = url_for('admin.dashboard')

    if request.method == 'POST':
        user = _login(request.form.get('email', ''), request.form.get('password', ''))
        if user is None:
            flash('Invalid email or password')
        elif user['role'] != 'admin':
            session.clear()
            flash('Admin privileges required')
        else:
            return redirect(next_url)
    return render_template_string(LOGIN_TEMPLATE, next=next_url)
