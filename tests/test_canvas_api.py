"""Working canvas endpoints."""

import json

from sqlalchemy.exc import OperationalError

from conftest import add_node, connect, set_weight


def build_scenario(client):
    decision = add_node(client, 'decision', 'Change jobs?')
    upside = add_node(client, 'factor', 'Higher salary')
    downside = add_node(client, 'factor', 'Longer commute')
    set_weight(client, upside['id'], 5)
    set_weight(client, downside['id'], -3)
    connect(client, decision['id'], upside['id'])
    connect(client, decision['id'], downside['id'])
    return decision, upside, downside


def test_canvas_requires_login(client):
    response = client.get('/canvas/')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required'}


def test_empty_canvas(auth_client):
    data = auth_client.get('/canvas/').get_json()
    assert data['nodes'] == []
    assert data['connections'] == []
    assert data['scores'] == {}
    assert data['map_id'] is None
    assert data['map_name'] == 'Untitled Map'


def test_add_node_defaults(auth_client):
    node = add_node(auth_client, 'factor')
    assert node['type'] == 'factor'
    assert node['text'] == 'New Factor'
    assert node['weight'] == 0
    assert 100 <= node['x'] <= 300
    assert 100 <= node['y'] <= 300


def test_add_node_rejects_unknown_type(auth_client):
    response = auth_client.post('/canvas/nodes', json={'type': 'option'})
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_score_is_weighted_sum(auth_client):
    decision, _, _ = build_scenario(auth_client)
    data = auth_client.get('/canvas/').get_json()
    assert data['scores'] == {decision['id']: 2}
    assert len(data['connections']) == 2


def test_weight_is_clamped(auth_client):
    factor = add_node(auth_client, 'factor')
    data = set_weight(auth_client, factor['id'], 99)
    assert data['node']['weight'] == 10


def test_delete_factor_updates_score(auth_client):
    decision, upside, _ = build_scenario(auth_client)
    response = auth_client.delete(f"/canvas/nodes/{upside['id']}")
    data = response.get_json()
    assert data['deleted'] is True
    assert data['scores'] == {decision['id']: -3}
    assert all(edge['to'] != upside['id'] for edge in data['connections'])


def test_update_unknown_node_is_noop(auth_client):
    response = auth_client.patch('/canvas/nodes/factor-missing', json={'text': 'Ghost'})
    assert response.status_code == 200
    assert response.get_json()['node'] is None


def test_refused_connections(auth_client):
    decision = add_node(auth_client, 'decision')
    factor = add_node(auth_client, 'factor')

    assert connect(auth_client, factor['id'], decision['id'])['connected'] is False
    assert connect(auth_client, decision['id'], decision['id'])['connected'] is False
    assert connect(auth_client, decision['id'], factor['id'])['connected'] is True
    assert connect(auth_client, decision['id'], factor['id'])['connected'] is False
    assert len(auth_client.get('/canvas/').get_json()['connections']) == 1


def test_connect_with_non_string_ids(auth_client):
    data = auth_client.post('/canvas/connections', json={'from': 1, 'to': ['x']}).get_json()
    assert data['connected'] is False


def test_disconnect(auth_client):
    decision, upside, _ = build_scenario(auth_client)
    response = auth_client.delete('/canvas/connections', json={'from': decision['id'], 'to': upside['id']})
    data = response.get_json()
    assert data['disconnected'] is True
    assert data['scores'] == {decision['id']: -3}


def test_connecting_mode(auth_client):
    decision = add_node(auth_client, 'decision')
    factor = add_node(auth_client, 'factor')

    data = auth_client.post('/canvas/connections/start', json={'source_id': decision['id']}).get_json()
    assert data['pending_source'] == decision['id']

    data = auth_client.post('/canvas/connections/complete', json={'target_id': factor['id']}).get_json()
    assert data['connected'] is True
    assert data['pending_source'] is None


def test_refused_completion_leaves_connecting_mode(auth_client):
    decision = add_node(auth_client, 'decision')
    factor = add_node(auth_client, 'factor')

    auth_client.post('/canvas/connections/start', json={'source_id': factor['id']})
    data = auth_client.post('/canvas/connections/complete', json={'target_id': decision['id']}).get_json()
    assert data['connected'] is False
    assert data['pending_source'] is None
    assert data['connections'] == []


def test_cancel_connecting_mode(auth_client):
    decision = add_node(auth_client, 'decision')
    auth_client.post('/canvas/connections/start', json={'source_id': decision['id']})
    data = auth_client.post('/canvas/connections/cancel').get_json()
    assert data['pending_source'] is None


def test_start_requires_source(auth_client):
    response = auth_client.post('/canvas/connections/start', json={})
    assert response.status_code == 400


def test_deleting_pending_source_cancels_connecting_mode(auth_client):
    decision = add_node(auth_client, 'decision')
    auth_client.post('/canvas/connections/start', json={'source_id': decision['id']})
    data = auth_client.delete(f"/canvas/nodes/{decision['id']}").get_json()
    assert data['pending_source'] is None


def test_reset(auth_client):
    build_scenario(auth_client)
    data = auth_client.post('/canvas/reset').get_json()
    assert data['nodes'] == []
    assert data['map_id'] is None


def test_analysis_locked_for_free_users(auth_client):
    decision, _, _ = build_scenario(auth_client)
    data = auth_client.get(f"/canvas/decisions/{decision['id']}/analysis").get_json()
    assert data['score'] == 2
    assert data['factor_count'] == 2
    assert data['locked'] is True
    assert 'positive_factors' not in data


def test_analysis_breakdown_for_premium(premium_client):
    decision, upside, downside = build_scenario(premium_client)
    data = premium_client.get(f"/canvas/decisions/{decision['id']}/analysis").get_json()
    assert data['locked'] is False
    assert [node['id'] for node in data['positive_factors']] == [upside['id']]
    assert [node['id'] for node in data['negative_factors']] == [downside['id']]


def test_analysis_of_factor_is_404(auth_client):
    factor = add_node(auth_client, 'factor')
    response = auth_client.get(f"/canvas/decisions/{factor['id']}/analysis")
    assert response.status_code == 404


def test_non_finite_position_is_ignored(auth_client):
    node = add_node(auth_client, 'decision')
    response = auth_client.patch(
        f"/canvas/nodes/{node['id']}",
        data='{"x": 1e999, "y": -1e999}',
        content_type='application/json',
    )
    assert response.status_code == 200

    body = auth_client.get('/canvas/').get_data(as_text=True)
    assert 'Infinity' not in body and 'NaN' not in body
    stored = json.loads(body)['nodes'][0]
    assert (stored['x'], stored['y']) == (node['x'], node['y'])


def test_large_canvas_is_kept_server_side(auth_client):
    decision = add_node(auth_client, 'decision', 'Big decision')
    for index in range(120):
        response = auth_client.post('/canvas/nodes', json={'type': 'factor', 'text': f'Factor number {index}'})
        assert response.status_code == 201
        for cookie in response.headers.getlist('Set-Cookie'):
            assert len(cookie) < 4093

    data = auth_client.get('/canvas/').get_json()
    assert len(data['nodes']) == 121
    assert data['nodes'][0]['id'] == decision['id']


def test_canvas_database_failure_is_503(auth_client, monkeypatch):
    add_node(auth_client, 'decision')

    def broken_save(user_id, canvas):
        raise OperationalError('UPDATE canvas_drafts', {}, Exception('connection lost'))

    monkeypatch.setattr('mindnav.routes.canvas.save_canvas', broken_save)
    response = auth_client.post('/canvas/nodes', json={'type': 'factor'})
    assert response.status_code == 503
    assert response.get_json() == {'error': 'Failed to update canvas'}

    monkeypatch.undo()
    assert len(auth_client.get('/canvas/').get_json()['nodes']) == 1
