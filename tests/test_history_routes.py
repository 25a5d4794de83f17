from unittest.mock import patch


def test_history_newest_first(user_client, backend, user_id):
    older = backend.add_scan(user_id, species_slug='boston-fern')
    newer = backend.add_scan(user_id, species_slug='staghorn-fern')

    data = user_client.get('/history').get_json()['data']

    assert [item['id'] for item in data['items']] == [newer, older]
    assert data['total'] == 2


def test_history_only_lists_own_scans(user_client, backend, user_id):
    other_id = backend.add_user('other@example.com', 'Other.1234')
    backend.add_scan(other_id)
    mine = backend.add_scan(user_id)

    data = user_client.get('/history').get_json()['data']

    assert [item['id'] for item in data['items']] == [mine]


def test_history_search_by_common_and_scientific_name(user_client, backend, user_id):
    boston = backend.add_scan(user_id, species_slug='boston-fern')
    backend.add_scan(user_id, species_slug='staghorn-fern')
    backend.add_scan(user_id, is_fern=False)

    by_common = user_client.get('/history?q=BOSTON').get_json()['data']
    by_scientific = user_client.get('/history?q=nephrolepis').get_json()['data']

    assert [item['id'] for item in by_common['items']] == [boston]
    assert [item['id'] for item in by_scientific['items']] == [boston]
    assert by_common['total'] == 3
    assert by_common['count'] == 1


def test_delete_history_item(user_client, backend, user_id):
    keep = backend.add_scan(user_id)
    remove = backend.add_scan(user_id)

    response = user_client.delete(f'/history/{remove}')

    assert response.status_code == 200
    assert [row['id'] for row in backend.tables['scans']] == [keep]


def test_delete_all_history(user_client, backend, user_id):
    other_id = backend.add_user('other@example.com', 'Other.1234')
    theirs = backend.add_scan(other_id)
    for _ in range(3):
        backend.add_scan(user_id)

    response = user_client.post('/history/delete-all')

    assert response.status_code == 200
    assert response.get_json()['data']['deleted'] == 3
    assert [row['id'] for row in backend.tables['scans']] == [theirs]


def test_delete_all_reports_partial_failure(user_client, backend, user_id):
    stuck = backend.add_scan(user_id)
    backend.add_scan(user_id)

    with patch('repositories.scans.delete_scan', side_effect=lambda scan_id: scan_id != stuck):
        response = user_client.post('/history/delete-all')

    body = response.get_json()
    assert response.status_code == 500
    assert body['details']['failed_ids'] == [stuck]
    assert body['details']['deleted'] == 1


def test_delete_all_with_empty_history(user_client):
    response = user_client.post('/history/delete-all')

    assert response.status_code == 200
    assert response.get_json()['data']['deleted'] == 0
