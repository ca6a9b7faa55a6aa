# app.py
import hashlib
import logging
from datetime import datetime, timezone

import click
from flask import Flask, current_app, jsonify, render_template_string, request
from flask_cors import CORS

import config
import db
import models
import users
from admin import api as admin_api
from admin import bp as admin_bp
from auth import bp as auth_bp
from errors import ValidationError, register_error_handlers
from logging_config import configure_logging
from twitch import TwitchClient, TwitchError, offline_status

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config['LOG_LEVEL'], app.config['LOG_FORMAT'])
    register_error_handlers(app)
    CORS(app, resources={r'/api/analytics/*': {'origins': '*', 'send_wildcard': True}})
    db.init_app(app)

    app.extensions['twitch'] = TwitchClient(
        app.config['TWITCH_CLIENT_ID'],
        app.config['TWITCH_CLIENT_SECRET'],
        app.config['TWITCH_CHANNEL'],
        timeout=app.config['TWITCH_TIMEOUT'],
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(admin_api)
    register_routes(app)
    register_commands(app)

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    # ---- ensure DB exists ----
    with app.app_context():
        db.init_db()
    return app


# ---- Helpers ----
def hash_ip(req):
    """First 16 hex chars of sha256 over the client ip; the raw ip is never stored."""
    forwarded = req.headers.get('X-Forwarded-For')
    ip = forwarded.split(',')[0].strip() if forwarded else None
    ip = ip or req.remote_addr or 'unknown'
    return hashlib.sha256(ip.encode()).hexdigest()[:16]


def _utcnow_iso():
    return datetime.now(timezone.utc).isoformat()


# ---- Landing page ----
LANDING_TEMPLATE = """
<!doctype html>
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>MisrraVB</title>
<h1>MisrraVB</h1>
<p id="live">&nbsp;</p>
<ul>
{% for link in links %}
  <li><a href="{{ link.url }}" data-platform="{{ link.platform }}" target="_blank" rel="noopener">
    {{ link.title }}</a> <small>{{ link.username }}</small></li>
{% endfor %}
</ul>
{% if devotional %}
<h2>{{ devotional.title }}</h2>
<p><small>{{ devotional.devotional_date }}</small></p>
<div style="white-space:pre-wrap">{{ devotional.content }}</div>
{% endif %}
<script>
document.querySelectorAll('a[data-platform]').forEach(function (a) {
  a.addEventListener('click', function () {
    fetch('/api/analytics/click', {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify({platform: a.dataset.platform, url: a.href}),
      keepalive: true
    }).catch(function () {});
  });
});
fetch('/api/twitch/live').then(function (r) { return r.json(); }).then(function (s) {
  if (s.isLive) {
    document.getElementById('live').textContent = 'LIVE: ' + s.title + ' (' + s.viewers + ' viewers)';
  }
}).catch(function () {});
</script>
"""


def register_routes(app):

    @app.route('/')
    def index():
        feed = models.get_published_devotionals(limit=1)
        return render_template_string(
            LANDING_TEMPLATE,
            links=current_app.config['LINKS'],
            devotional=feed[0] if feed else None,
        )

    # ---- Analytics ----
    @app.route('/api/analytics/track', methods=['POST'])
    def track_click():
        body = request.get_json(silent=True) or {}
        platform = body.get('platform')
        url = body.get('url')
        if not platform or not url:
            raise ValidationError('Platform and URL are required')

        click_id = models.register_click(
            platform=platform,
            url=url,
            user_agent=request.headers.get('User-Agent', ''),
            ip_hash=hash_ip(request),
            referrer=request.referrer or '',
        )
        return jsonify({'success': True, 'clickId': click_id, 'message': 'Click tracked successfully'})

    @app.route('/api/analytics/stats')
    def analytics_stats():
        try:
            days = int(request.args.get('days', 7))
        except ValueError:
            raise ValidationError('days must be an integer')
        days = min(max(days, 1), 365)

        response = jsonify({'success': True, 'data': models.get_all_stats(days), 'timestamp': _utcnow_iso()})
        response.headers['Cache-Control'] = 'public, max-age=60'
        return response

    @app.route('/api/analytics/click', methods=['POST'])
    def click_beacon():
        body = request.get_json(silent=True) or {}
        platform = body.get('platform')
        if not platform:
            raise ValidationError('Platform required')

        url = body.get('url')
        if not url:
            known = {link['platform']: link['url'] for link in current_app.config['LINKS']}
            url = known.get(platform, '')

        models.register_click(
            platform=platform,
            url=url,
            user_agent=request.headers.get('User-Agent', 'unknown'),
            ip_hash=hash_ip(request),
            referrer=request.referrer or 'direct',
        )
        return jsonify({'success': True, 'totalClicks': models.get_total_clicks()})

    @app.route('/api/analytics/click', methods=['GET'])
    def click_summary():
        recent = models.get_latest_clicks(50)
        return jsonify({
            'totalClicks': models.get_total_clicks(),
            'lastUpdated': recent[0]['clicked_at'] if recent else None,
            'platformStats': {r['platform']: r['count'] for r in models.get_clicks_by_platform()},
            'dailyStats': models.get_daily_totals(30),
            'recentClicks': recent,
        })

    # ---- Public devotional feed ----
    @app.route('/api/devotionals')
    def devotional_feed():
        try:
            limit = min(max(int(request.args.get('limit', 10)), 1), 100)
        except ValueError:
            raise ValidationError('limit must be an integer')
        return jsonify({'success': True, 'devotionals': models.get_published_devotionals(limit)})

    # ---- Twitch live status ----
    @app.route('/api/twitch/live')
    def twitch_live():
        try:
            status = current_app.extensions['twitch'].get_live_status()
        except TwitchError as e:
            logger.error(f'Twitch API error: {e.message}')
            return jsonify(offline_status(error=e.message)), 500

        response = jsonify(status)
        response.headers['Cache-Control'] = 'public, max-age=30'
        return response


def register_commands(app):

    @app.cli.command('create-user')
    @click.argument('name')
    @click.argument('email')
    @click.argument('password')
    @click.option('--role', type=click.Choice(users.ROLES), default='user')
    def create_user_command(name, email, password, role):
        """Create a user account from the command line."""
        user = users.create_user(name, email, password, role=role)
        click.echo(f'Created {user["role"]} {user["email"]} (id {user["id"]})')


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=app.config['PORT'])
