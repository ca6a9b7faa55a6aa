import models


def test_soft_delete_hides_from_listing_and_feed(ctx):
    kept = models.create_devotional('Kept', 'Psalm 23', '2024-01-02', 'published')
    gone = models.create_devotional('Gone', 'John 3:16', '2024-01-03', 'published')

    assert models.soft_delete_devotional(gone['id'])
    assert models.soft_delete_devotional(gone['id']) is False

    assert [d['id'] for d in models.list_devotionals()] == [kept['id']]
    assert [d['id'] for d in models.list_devotionals(include_deleted=True)] == [gone['id'], kept['id']]
    assert [d['id'] for d in models.get_published_devotionals()] == [kept['id']]
    assert models.get_devotional(gone['id'])['deleted_at'] is not None


def test_restore_devotional(ctx):
    devotional = models.create_devotional('Title', 'Body', '2024-01-02', 'published')
    models.soft_delete_devotional(devotional['id'])

    assert models.restore_devotional(devotional['id'])
    assert models.restore_devotional(devotional['id']) is False
    assert models.get_devotional(devotional['id'])['deleted_at'] is None
    assert len(models.get_published_devotionals()) == 1


def test_feed_only_contains_published(ctx):
    models.create_devotional('Draft', 'Body', '2024-01-05')
    published = models.create_devotional('Published', 'Body', '2024-01-01', 'published')

    assert [d['id'] for d in models.get_published_devotionals()] == [published['id']]
    assert [d['title'] for d in models.list_devotionals(status='draft')] == ['Draft']


def test_update_devotional(ctx):
    devotional = models.create_devotional('Title', 'Body', '2024-01-02')

    updated = models.update_devotional(devotional['id'], status='published', title='New title')
    assert updated['status'] == 'published'
    assert updated['title'] == 'New title'
    assert updated['content'] == 'Body'

    models.soft_delete_devotional(devotional['id'])
    assert models.update_devotional(devotional['id'], title='Nope') is None
    assert models.update_devotional(999, title='Nope') is None


def test_count_devotionals(ctx):
    models.create_devotional('A', 'Body', '2024-01-01', 'published')
    models.create_devotional('B', 'Body', '2024-01-02')
    c = models.create_devotional('C', 'Body', '2024-01-03')
    models.soft_delete_devotional(c['id'])

    assert models.count_devotionals() == {'active': 2, 'published': 1, 'deleted': 1}


# ---- HTTP ----
def test_api_devotional_lifecycle(admin_client, client):
    resp = admin_client.post('/api/admin/devotionals', json={
        'title': ' Morning ', 'content': 'Psalm 23', 'devotional_date': '2024-06-01', 'status': 'published',
    })
    assert resp.status_code == 201
    devotional = resp.get_json()['devotional']
    assert devotional['title'] == 'Morning'

    feed = client.get('/api/devotionals').get_json()['devotionals']
    assert [d['id'] for d in feed] == [devotional['id']]

    resp = admin_client.delete(f'/api/admin/devotionals?id={devotional["id"]}&action=soft')
    assert resp.get_json()['devotional']['deleted_at'] is not None
    assert client.get('/api/devotionals').get_json()['devotionals'] == []
    assert admin_client.get('/api/admin/devotionals').get_json()['devotionals'] == []
    listed = admin_client.get('/api/admin/devotionals?includeDeleted=true').get_json()['devotionals']
    assert len(listed) == 1

    assert admin_client.delete(f'/api/admin/devotionals?id={devotional["id"]}').status_code == 409
    assert admin_client.patch('/api/admin/devotionals', json={
        'id': devotional['id'], 'title': 'Edited',
    }).status_code == 404

    resp = admin_client.delete(f'/api/admin/devotionals?id={devotional["id"]}&action=restore')
    assert resp.get_json()['devotional']['deleted_at'] is None

    resp = admin_client.patch('/api/admin/devotionals', json={'id': devotional['id'], 'status': 'draft'})
    assert resp.get_json()['devotional']['status'] == 'draft'
    assert client.get('/api/devotionals').get_json()['devotionals'] == []


def test_api_get_single_devotional(admin_client):
    devotional = admin_client.post('/api/admin/devotionals', json={
        'title': 'T', 'content': 'C', 'devotional_date': '2024-06-01',
    }).get_json()['devotional']

    body = admin_client.get(f'/api/admin/devotionals?id={devotional["id"]}').get_json()
    assert body['devotional'] == devotional
    assert admin_client.get('/api/admin/devotionals?id=999').status_code == 404


def test_api_rejects_invalid_devotionals(admin_client):
    base = {'title': 'T', 'content': 'C', 'devotional_date': '2024-06-01'}

    for bad in ({'title': ''}, {'content': '   '}, {'devotional_date': None},
                {'devotional_date': '2024-13-01'}, {'status': 'archived'}):
        resp = admin_client.post('/api/admin/devotionals', json={**base, **bad})
        assert resp.status_code == 400, bad

    assert admin_client.delete('/api/admin/devotionals?id=1&action=purge').status_code == 400


def test_landing_page_shows_latest_published(client, admin_client):
    admin_client.post('/api/admin/devotionals', json={
        'title': 'Old word', 'content': 'x', 'devotional_date': '2024-01-01', 'status': 'published',
    })
    admin_client.post('/api/admin/devotionals', json={
        'title': 'Fresh word', 'content': 'y', 'devotional_date': '2024-02-01', 'status': 'published',
    })

    resp = client.get('/')

    assert resp.status_code == 200
    assert b'Fresh word' in resp.data
    assert b'Old word' not in resp.data
    assert b'data-platform="twitch"' in resp.data
