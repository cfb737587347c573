"""
Client endpoints
"""
from cr3dify.models import Client

CLIENT = {
    'full_name': 'Siti Aminah',
    'ic_number': '880202-10-5566',
    'phone': '013-5550101',
    'email': 'siti.aminah@gmail.com',
    'address': '12 Jalan Mawar, Shah Alam'
}

def test_create_client(api, app, tenant):
    response = api.post('/api/clients', json=CLIENT, headers=tenant.headers)

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['full_name'] == 'Siti Aminah'
    assert data['status'] == 'active'

    with app.app_context():
        assert Client.query.filter_by(tenant_id=tenant.id).count() == 1

def test_create_client_validation(api, tenant):
    response = api.post('/api/clients', json=dict(CLIENT, email='not-an-email', phone=''),
                        headers=tenant.headers)

    assert response.status_code == 400
    fields = response.get_json()['fields']
    assert 'email' in fields
    assert 'phone' in fields

def test_ic_number_unique_per_tenant(api, tenant, other_tenant):
    assert api.post('/api/clients', json=CLIENT, headers=tenant.headers).status_code == 201

    response = api.post('/api/clients', json=CLIENT, headers=tenant.headers)
    assert response.status_code == 409
    assert response.get_json()['code'] == 'duplicate_ic_number'

    # Another tenant may register the same person
    assert api.post('/api/clients', json=CLIENT, headers=other_tenant.headers).status_code == 201

def test_list_clients_search_and_status(api, tenant, other_tenant, make_client):
    make_client(tenant, full_name='Lim Wei Ming')
    make_client(tenant, full_name='Raj Kumar', status='inactive')
    make_client(other_tenant, full_name='Lim Boon Keng')

    body = api.get('/api/clients', headers=tenant.headers).get_json()
    assert body['total'] == 2

    body = api.get('/api/clients?query=lim', headers=tenant.headers).get_json()
    assert [item['full_name'] for item in body['data']] == ['Lim Wei Ming']

    body = api.get('/api/clients?status=inactive', headers=tenant.headers).get_json()
    assert [item['full_name'] for item in body['data']] == ['Raj Kumar']

def test_view_client_is_tenant_scoped(api, tenant, other_tenant, make_client):
    client_id = make_client(tenant)

    assert api.get(f'/api/clients/{client_id}', headers=tenant.headers).status_code == 200
    assert api.get(f'/api/clients/{client_id}', headers=other_tenant.headers).status_code == 404

def test_update_client(api, tenant, make_client):
    client_id = make_client(tenant)

    response = api.patch(f'/api/clients/{client_id}', json=dict(CLIENT, status='suspended'),
                         headers=tenant.headers)

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['ic_number'] == CLIENT['ic_number']
    assert data['status'] == 'suspended'

def test_update_client_rejects_taken_ic_number(api, tenant, make_client):
    make_client(tenant, ic_number=CLIENT['ic_number'])
    client_id = make_client(tenant)

    response = api.patch(f'/api/clients/{client_id}', json=CLIENT, headers=tenant.headers)

    assert response.status_code == 409

def test_delete_client(api, app, tenant, make_client):
    client_id = make_client(tenant)

    response = api.delete(f'/api/clients/{client_id}', headers=tenant.headers)

    assert response.status_code == 200
    assert response.get_json() == {'success': True}
    with app.app_context():
        assert Client.query.count() == 0

def test_delete_client_with_loans_is_refused(api, tenant, make_client, make_loan):
    client_id = make_client(tenant)
    make_loan(tenant, client_id=client_id)

    response = api.delete(f'/api/clients/{client_id}', headers=tenant.headers)

    assert response.status_code == 409
    assert response.get_json()['code'] == 'client_has_loans'

def test_client_writes_disabled(api, app, tenant):
    app.config['ENABLE_WRITE'] = False

    response = api.post('/api/clients', json=CLIENT, headers=tenant.headers)

    assert response.status_code == 403
    assert response.get_json()['writeEnabled'] is False
