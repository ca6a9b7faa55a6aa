# admin.py
# Admin dashboard page and the /api/admin/* resources. Everything here sits behind the admin gate.
import math
from datetime import date, datetime, timezone

from flask import Blueprint, jsonify, render_template_string, request

import models
import users
from auth import admin_gate, current_user
from errors import ConflictError, NotFoundError, PermissionDenied, ValidationError

bp = Blueprint('admin', __name__, url_prefix='/admin')
api = Blueprint('admin_api', __name__, url_prefix='/api/admin')


@bp.before_request
def gate_pages():
    return admin_gate(api=False)


@api.before_request
def gate_api():
    return admin_gate(api=True)


# ---- Input helpers ----
def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError('JSON body required')
    return body


def _parse_id(value, name='id'):
    if value is None or value == '':
        raise ValidationError(f'{name} is required')
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{name} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer')


def _text(body, key, required=False, strip=True):
    value = body.get(key)
    if value is None:
        if required:
            raise ValidationError(f'{key} is required')
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    if strip:
        value = value.strip()
    if required and not value.strip():
        raise ValidationError(f'{key} is required')
    return value


def _date(value, name):
    if value is None:
        return None
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError:
        raise ValidationError(f'{name} must be a YYYY-MM-DD date')


def _choice(value, name, choices):
    if value is None or value == '':
        return None
    if value not in choices:
        raise ValidationError(f'{name} must be one of: {", ".join(choices)}')
    return value


def _amount(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError('amount must be a number')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError('amount must be a number')
    if not math.isfinite(amount):
        raise ValidationError('amount must be a finite number')
    if amount <= 0:
        raise ValidationError('amount must be greater than 0')
    return amount


def _today():
    return datetime.now(timezone.utc).date().isoformat()


# ---- Dashboard ----
DASHBOARD_TEMPLATE = """
<!doctype html>
<title>Admin Panel</title>
<p>{{ user.name }} &middot;
<form action="/api/auth/logout" method="post" style="display:inline"><button type="submit">Log out</button></form></p>
<h1>Admin Panel</h1>
<p><a href="/admin/analytics">Analytics</a></p>

<h2>Overview</h2>
<table border="1" cellpadding="6">
<tr><th>users</th><td>{{ user_count }}</td></tr>
<tr><th>devotionals (published / live / deleted)</th>
    <td>{{ devotionals.published }} / {{ devotionals.active }} / {{ devotionals.deleted }}</td></tr>
<tr><th>payments completed</th><td>${{ '%.2f'|format(summary.totalCompleted) }} ({{ summary.countCompleted }})</td></tr>
<tr><th>payments pending</th><td>${{ '%.2f'|format(summary.totalPending) }} ({{ summary.countPending }})</td></tr>
<tr><th>payments total</th><td>${{ '%.2f'|format(summary.totalAmount) }}</td></tr>
<tr><th>clicks total / last 24h</th><td>{{ stats.totalClicks }} / {{ stats.clicksLast24h }}</td></tr>
</table>

<h2>Clicks by platform</h2>
<table border="1" cellpadding="6">
<tr><th>platform</th><th>clicks</th></tr>
{% for row in stats.clicksByPlatform %}
<tr><td>{{ row.platform }}</td><td>{{ row.count }}</td></tr>
{% endfor %}
</table>

<h2>Recent clicks</h2>
<table border="1" cellpadding="6">
<tr><th>time (UTC)</th><th>platform</th><th>url</th><th>ua</th><th>referrer</th></tr>
{% for c in recent %}
<tr>
  <td>{{ c.clicked_at }}</td>
  <td>{{ c.platform }}</td>
  <td>{{ c.url }}</td>
  <td style="max-width:300px;word-wrap:break-word">{{ c.user_agent }}</td>
  <td>{{ c.referrer }}</td>
</tr>
{% endfor %}
</table>
"""


@bp.route('/')
def dashboard():
    return render_template_string(
        DASHBOARD_TEMPLATE,
        user=current_user(),
        user_count=users.count_users(),
        devotionals=models.count_devotionals(),
        summary=models.get_payment_summary(),
        stats=models.get_all_stats(),
        recent=models.get_latest_clicks(100),
    )


ANALYTICS_TEMPLATE = """
<!doctype html>
<title>Analytics</title>
<p><a href="/admin/">Admin Panel</a></p>
<h1>Analytics</h1>
<form method="get">
  <select name="days" onchange="this.form.submit()">
  {% for d in (7, 14, 30, 90) %}
    <option value="{{ d }}"{% if d == days %} selected{% endif %}>last {{ d }} days</option>
  {% endfor %}
  </select>
</form>

<table border="1" cellpadding="6">
<tr><th>total clicks</th><td>{{ stats.totalClicks }}</td></tr>
<tr><th>last 24h</th><td>{{ stats.clicksLast24h }}</td></tr>
<tr><th>platforms</th><td>{{ stats.clicksByPlatform|length }}</td></tr>
</table>

<h2>Daily trend</h2>
{% if stats.trend %}
<table border="1" cellpadding="6">
<tr><th>date</th><th>clicks</th></tr>
{% for day in stats.trend %}
<tr><td>{{ day.date }}</td><td>{{ day.count }}</td></tr>
{% endfor %}
</table>
{% else %}
<p>No clicks in this period.</p>
{% endif %}

<h2>Clicks by platform</h2>
<table border="1" cellpadding="6">
<tr><th>platform</th><th>clicks</th></tr>
{% for row in stats.clicksByPlatform %}
<tr><td>{{ row.platform }}</td><td>{{ row.count }}</td></tr>
{% endfor %}
</table>

<h2>Top links</h2>
<table border="1" cellpadding="6">
<tr><th>#</th><th>platform</th><th>url</th><th>clicks</th></tr>
{% for link in stats.topLinks %}
<tr><td>{{ loop.index }}</td><td>{{ link.platform }}</td><td>{{ link.url }}</td><td>{{ link.count }}</td></tr>
{% endfor %}
</table>
"""


@bp.route('/analytics')
def analytics():
    try:
        days = int(request.args.get('days', 7))
    except ValueError:
        raise ValidationError('days must be an integer')
    days = min(max(days, 1), 365)
    return render_template_string(ANALYTICS_TEMPLATE, days=days, stats=models.get_all_stats(days))


# ---- Users ----
@api.route('/users', methods=['GET'])
def list_users():
    if request.args.get('id'):
        user = users.get_user_by_id(_parse_id(request.args['id']))
        if user is None:
            raise NotFoundError('User not found')
        return jsonify({'success': True, 'data': {'users': [user], 'total': 1}})

    try:
        limit = min(max(int(request.args.get('limit', 100)), 1), 500)
        offset = max(int(request.args.get('offset', 0)), 0)
    except ValueError:
        raise ValidationError('limit and offset must be integers')

    found, total = users.get_users(
        search=request.args.get('search') or None,
        role=_choice(request.args.get('role'), 'role', users.ROLES),
        status=_choice(request.args.get('status'), 'status', users.STATUSES),
        limit=limit,
        offset=offset,
    )
    return jsonify({'success': True, 'data': {'users': found, 'total': total}})


@api.route('/users', methods=['POST'])
def create_user():
    body = _json_body()
    name = _text(body, 'name', required=True)
    email = _text(body, 'email', required=True)
    password = _text(body, 'password', required=True, strip=False)
    if '@' not in email:
        raise ValidationError('email is not valid')
    if len(password) < 6:
        raise ValidationError('password must be at least 6 characters')
    role = _choice(body.get('role'), 'role', users.ROLES) or 'user'
    status = _choice(body.get('status'), 'status', users.STATUSES) or 'active'

    user = users.create_user(name, email, password, role=role, status=status)
    return jsonify({'success': True, 'data': {'user': user}}), 201


@api.route('/users', methods=['PUT'])
def update_user():
    body = _json_body()
    user_id = _parse_id(body.get('id'))
    name = _text(body, 'name')
    email = _text(body, 'email')
    password = _text(body, 'password', strip=False)
    role = _choice(body.get('role'), 'role', users.ROLES)
    status = _choice(body.get('status'), 'status', users.STATUSES)
    if name is not None and not name:
        raise ValidationError('name cannot be empty')
    if email is not None and '@' not in email:
        raise ValidationError('email is not valid')
    if password and len(password) < 6:
        raise ValidationError('password must be at least 6 characters')

    if user_id == current_user()['id']:
        if status == 'inactive':
            raise PermissionDenied('You cannot deactivate your own account')
        if role == 'user':
            raise PermissionDenied('You cannot remove your own admin role')

    user = users.update_user(user_id, name=name, email=email, role=role, status=status)
    if user is None:
        raise NotFoundError('User not found')
    if password:
        users.update_user_password(user_id, password)
    return jsonify({'success': True, 'data': {'user': user}})


@api.route('/users', methods=['PATCH'])
def set_user_status():
    user_id = _parse_id(request.args.get('id'))
    action = _choice(request.args.get('action'), 'action', ('activate', 'deactivate'))
    if action is None:
        raise ValidationError('action is required')
    if action == 'deactivate' and user_id == current_user()['id']:
        raise PermissionDenied('You cannot deactivate your own account')

    changed = users.activate_user(user_id) if action == 'activate' else users.deactivate_user(user_id)
    if not changed:
        raise NotFoundError('User not found')
    return jsonify({'success': True, 'data': {'user': users.get_user_by_id(user_id)}})


@api.route('/users', methods=['DELETE'])
def delete_user():
    user_id = _parse_id(request.args.get('id'))
    if user_id == current_user()['id']:
        raise PermissionDenied('You cannot delete your own account')
    if not users.delete_user(user_id):
        raise NotFoundError('User not found')
    return jsonify({'success': True})


# ---- Payments ----
@api.route('/payments', methods=['GET'])
def list_payments():
    if request.args.get('id'):
        payment = models.get_payment(_parse_id(request.args['id']))
        if payment is None:
            raise NotFoundError('Payment not found')
        return jsonify({'success': True, 'payments': [payment]})

    if request.args.get('summary') == 'true':
        return jsonify({'success': True, 'summary': models.get_payment_summary()})

    payments = models.list_payments(
        start_date=_date(request.args.get('startDate') or None, 'startDate'),
        end_date=_date(request.args.get('endDate') or None, 'endDate'),
        status=_choice(request.args.get('status'), 'status', models.PAYMENT_STATUSES),
        recorder_id=request.args.get('recorderId') or None,
    )
    return jsonify({'success': True, 'payments': payments})


@api.route('/payments', methods=['POST'])
def create_payment():
    body = _json_body()
    recorder_id = _text(body, 'paymentRecorderId', required=True)
    description = _text(body, 'description', required=True)
    amount = _amount(body.get('amount'))
    if amount is None:
        raise ValidationError('amount is required')
    payment_date = _date(body.get('date') or None, 'date') or _today()
    status = _choice(body.get('status'), 'status', models.PAYMENT_STATUSES) or 'pending'

    payment = models.create_payment(recorder_id, amount, payment_date, description, status)
    return jsonify({'success': True, 'payment': payment}), 201


@api.route('/payments', methods=['PATCH'])
def update_payment():
    body = _json_body()
    payment_id = _parse_id(body.get('id'))
    recorder_id = _text(body, 'paymentRecorderId')
    description = _text(body, 'description')
    if recorder_id == '' or description == '':
        raise ValidationError('paymentRecorderId and description cannot be empty')

    payment = models.update_payment(
        payment_id,
        recorder_id=recorder_id,
        amount=_amount(body.get('amount')),
        date=_date(body.get('date'), 'date'),
        description=description,
        status=_choice(body.get('status'), 'status', models.PAYMENT_STATUSES),
    )
    if payment is None:
        raise NotFoundError('Payment not found')
    return jsonify({'success': True, 'payment': payment})


@api.route('/payments', methods=['DELETE'])
def delete_payment():
    if not models.delete_payment(_parse_id(request.args.get('id'))):
        raise NotFoundError('Payment not found')
    return jsonify({'success': True})


# ---- Devotionals ----
@api.route('/devotionals', methods=['GET'])
def list_devotionals():
    if request.args.get('id'):
        devotional = models.get_devotional(_parse_id(request.args['id']))
        if devotional is None:
            raise NotFoundError('Devotional not found')
        return jsonify({'success': True, 'devotional': devotional})

    devotionals = models.list_devotionals(
        status=_choice(request.args.get('status'), 'status', models.DEVOTIONAL_STATUSES),
        include_deleted=request.args.get('includeDeleted') == 'true',
    )
    return jsonify({'success': True, 'devotionals': devotionals})


@api.route('/devotionals', methods=['POST'])
def create_devotional():
    body = _json_body()
    title = _text(body, 'title', required=True)
    content = _text(body, 'content', required=True, strip=False)
    devotional_date = _date(body.get('devotional_date') or None, 'devotional_date')
    if devotional_date is None:
        raise ValidationError('devotional_date is required')
    status = _choice(body.get('status'), 'status', models.DEVOTIONAL_STATUSES) or 'draft'

    devotional = models.create_devotional(title, content, devotional_date, status)
    return jsonify({'success': True, 'devotional': devotional}), 201


@api.route('/devotionals', methods=['PATCH'])
def update_devotional():
    body = _json_body()
    devotional_id = _parse_id(body.get('id'))
    title = _text(body, 'title')
    content = _text(body, 'content', strip=False)
    if title == '' or (content is not None and not content.strip()):
        raise ValidationError('title and content cannot be empty')

    devotional = models.update_devotional(
        devotional_id,
        title=title,
        content=content,
        devotional_date=_date(body.get('devotional_date'), 'devotional_date'),
        status=_choice(body.get('status'), 'status', models.DEVOTIONAL_STATUSES),
    )
    if devotional is None:
        raise NotFoundError('Devotional not found')
    return jsonify({'success': True, 'devotional': devotional})


@api.route('/devotionals', methods=['DELETE'])
def delete_devotional():
    devotional_id = _parse_id(request.args.get('id'))
    action = _choice(request.args.get('action'), 'action', ('soft', 'restore')) or 'soft'
    devotional = models.get_devotional(devotional_id)
    if devotional is None:
        raise NotFoundError('Devotional not found')

    if action == 'restore':
        if not models.restore_devotional(devotional_id):
            raise ConflictError('Devotional is not deleted')
    elif not models.soft_delete_devotional(devotional_id):
        raise ConflictError('Devotional is already deleted')
    return jsonify({'success': True, 'devotional': models.get_devotional(devotional_id)})
