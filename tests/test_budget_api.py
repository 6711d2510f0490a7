"""Savings goal endpoints."""


def create_goal(client, name='Emergency fund', target=1000):
    return client.post('/budget/goals', json={'goal_name': name, 'target_amount': target})


def test_create_goal(auth_client):
    response = create_goal(auth_client)
    assert response.status_code == 201
    goal = response.get_json()
    assert goal['goal_name'] == 'Emergency fund'
    assert goal['target_amount'] == 1000.0
    assert goal['current_saved'] == 0.0
    assert goal['progress'] == 0.0
    assert goal['is_complete'] is False


def test_create_goal_requires_fields(auth_client):
    response = auth_client.post('/budget/goals', json={'goal_name': 'Trip'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Please enter goal name and target amount'


def test_create_goal_rejects_non_positive_target(auth_client):
    response = create_goal(auth_client, target=0)
    assert response.status_code == 400


def test_contributions_accumulate(auth_client):
    goal_id = create_goal(auth_client, target='200.00').get_json()['id']

    auth_client.post(f'/budget/goals/{goal_id}/contributions', json={'amount': '50.25'})
    goal = auth_client.post(f'/budget/goals/{goal_id}/contributions', json={'amount': 49.75}).get_json()
    assert goal['current_saved'] == 100.0
    assert goal['progress'] == 50.0
    assert goal['remaining'] == 100.0


def test_goal_completes_and_caps_progress(auth_client):
    goal_id = create_goal(auth_client, target=100).get_json()['id']
    goal = auth_client.post(f'/budget/goals/{goal_id}/contributions', json={'amount': 150}).get_json()
    assert goal['progress'] == 100.0
    assert goal['is_complete'] is True


def test_contribution_must_be_positive(auth_client):
    goal_id = create_goal(auth_client).get_json()['id']
    response = auth_client.post(f'/budget/goals/{goal_id}/contributions', json={'amount': -5})
    assert response.status_code == 400


def test_contribution_to_unknown_goal(auth_client):
    response = auth_client.post('/budget/goals/999/contributions', json={'amount': 5})
    assert response.status_code == 404


def test_list_and_delete_goals(auth_client):
    first = create_goal(auth_client, name='Car').get_json()['id']
    create_goal(auth_client, name='House')

    names = [goal['goal_name'] for goal in auth_client.get('/budget/goals').get_json()['goals']]
    assert names == ['House', 'Car']

    assert auth_client.delete(f'/budget/goals/{first}').get_json() == {'deleted': True}
    assert auth_client.delete(f'/budget/goals/{first}').status_code == 404
    assert len(auth_client.get('/budget/goals').get_json()['goals']) == 1
