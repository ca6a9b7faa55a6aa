import models


def _seed(ctx):
    models.create_payment('don-1', 100, '2024-01-10', 'January donation', 'completed')
    models.create_payment('don-2', 50.5, '2024-02-05', 'Pledge', 'pending')
    models.create_payment('don-1', 25, '2024-02-20', 'February donation', 'completed')
    models.create_payment('don-3', 999, '2024-03-01', 'Bounced', 'cancelled')


def test_create_payment_serializes_camel_case(ctx):
    payment = models.create_payment('don-1', 10, '2024-01-01', 'Gift')

    assert payment['paymentRecorderId'] == 'don-1'
    assert payment['status'] == 'pending'
    assert set(payment) == {'id', 'paymentRecorderId', 'amount', 'date', 'description',
                            'status', 'createdAt', 'updatedAt'}


def test_summary_excludes_cancelled(ctx):
    _seed(ctx)

    assert models.get_payment_summary() == {
        'totalCompleted': 125,
        'totalPending': 50.5,
        'totalAmount': 175.5,
        'countCompleted': 2,
        'countPending': 1,
    }


def test_summary_on_empty_ledger(ctx):
    summary = models.get_payment_summary()

    assert summary['totalAmount'] == 0
    assert summary['countCompleted'] == summary['countPending'] == 0


def test_list_payments_filters(ctx):
    _seed(ctx)

    assert [p['date'] for p in models.list_payments()] == ['2024-03-01', '2024-02-20', '2024-02-05', '2024-01-10']
    feb = models.list_payments(start_date='2024-02-01', end_date='2024-02-20')
    assert [p['description'] for p in feb] == ['February donation', 'Pledge']
    assert len(models.list_payments(status='completed', recorder_id='don-1')) == 2
    assert models.list_payments(recorder_id='nobody') == []


def test_update_and_delete_payment(ctx):
    payment = models.create_payment('don-1', 10, '2024-01-01', 'Gift')

    updated = models.update_payment(payment['id'], amount=15, status='completed')
    assert updated['amount'] == 15
    assert updated['status'] == 'completed'
    assert updated['description'] == 'Gift'

    assert models.update_payment(999, amount=1) is None
    assert models.delete_payment(payment['id'])
    assert models.get_payment(payment['id']) is None


# ---- Admin API ----
def test_api_create_list_summary(admin_client):
    resp = admin_client.post('/api/admin/payments', json={
        'paymentRecorderId': ' don-1 ', 'amount': '20.5', 'date': '2024-05-01',
        'description': 'Gift', 'status': 'completed',
    })
    assert resp.status_code == 201
    payment = resp.get_json()['payment']
    assert payment['paymentRecorderId'] == 'don-1'
    assert payment['amount'] == 20.5

    payments = admin_client.get('/api/admin/payments?status=completed').get_json()['payments']
    assert [p['id'] for p in payments] == [payment['id']]

    summary = admin_client.get('/api/admin/payments?summary=true').get_json()['summary']
    assert summary['totalCompleted'] == 20.5

    single = admin_client.get(f'/api/admin/payments?id={payment["id"]}').get_json()['payments']
    assert single == [payment]


def test_api_create_defaults_date_and_status(admin_client):
    resp = admin_client.post('/api/admin/payments', json={
        'paymentRecorderId': 'don-1', 'amount': 5, 'description': 'Coffee',
    })

    payment = resp.get_json()['payment']
    assert payment['status'] == 'pending'
    assert len(payment['date']) == 10


def test_api_rejects_invalid_payments(admin_client):
    base = {'paymentRecorderId': 'don-1', 'amount': 5, 'description': 'x', 'date': '2024-01-01'}

    for bad in ({'amount': 0}, {'amount': -3}, {'amount': 'abc'}, {'date': '01/02/2024'},
                {'status': 'refunded'}, {'description': '  '}, {'paymentRecorderId': None},
                {'amount': 'nan'}, {'amount': 'Infinity'}, {'amount': 1e309}, {'amount': float('nan')}):
        resp = admin_client.post('/api/admin/payments', json={**base, **bad})
        assert resp.status_code == 400, bad


def test_api_patch_and_delete(admin_client):
    payment = admin_client.post('/api/admin/payments', json={
        'paymentRecorderId': 'don-1', 'amount': 5, 'description': 'Coffee', 'date': '2024-01-01',
    }).get_json()['payment']

    resp = admin_client.patch('/api/admin/payments', json={'id': payment['id'], 'status': 'cancelled'})
    assert resp.get_json()['payment']['status'] == 'cancelled'

    assert admin_client.patch('/api/admin/payments', json={'id': 999, 'amount': 1}).status_code == 404
    assert admin_client.delete(f'/api/admin/payments?id={payment["id"]}').status_code == 200
    assert admin_client.delete(f'/api/admin/payments?id={payment["id"]}').status_code == 404
    assert admin_client.delete('/api/admin/payments?id=abc').status_code == 400


def test_api_rejected_amounts_leave_summary_clean(admin_client):
    for amount in ('nan', 'Infinity', '-inf'):
        resp = admin_client.post('/api/admin/payments', json={
            'paymentRecorderId': 'don-1', 'amount': amount, 'description': 'x', 'date': '2024-01-01',
        })
        assert resp.status_code == 400
        assert 'finite' in resp.get_json()['error']

    summary = admin_client.get('/api/admin/payments?summary=true').get_json()['summary']
    assert summary['totalAmount'] == 0


def test_api_rejects_non_integer_ids(admin_client):
    payment = admin_client.post('/api/admin/payments', json={
        'paymentRecorderId': 'don-1', 'amount': 5, 'description': 'Coffee', 'date': '2024-01-01',
    }).get_json()['payment']
    assert payment['id'] == 1

    for bad_id in (True, 1.9):
        resp = admin_client.patch('/api/admin/payments', json={'id': bad_id, 'status': 'completed'})
        assert resp.status_code == 400, bad_id

    resp = admin_client.patch('/api/admin/payments', json={'id': 1.0, 'status': 'completed'})
    assert resp.get_json()['payment']['status'] == 'completed'
