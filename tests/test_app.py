import users
from conftest import login


def test_security_headers(client):
    resp = client.get('/')

    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['X-Frame-Options'] == 'DENY'


def test_unknown_route_is_json_404(client):
    resp = client.get('/api/nope')

    assert resp.status_code == 404
    assert resp.get_json()['success'] is False


def test_init_is_idempotent(make_app):
    make_app()
    app = make_app()

    with app.app_context():
        assert users.count_users() == 1


def test_public_feed_limit_validation(client):
    assert client.get('/api/devotionals?limit=x').status_code == 400
    assert client.get('/api/devotionals?limit=5').get_json() == {'success': True, 'devotionals': []}


def test_create_user_command(app, client):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['create-user', 'Ana', 'ana@example.com', 'pass-123', '--role', 'admin'])

    assert result.exit_code == 0
    assert 'Created admin ana@example.com' in result.output
    assert login(client, 'ana@example.com', 'pass-123').status_code == 200
