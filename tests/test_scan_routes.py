import io
from urllib.parse import urlparse
from unittest.mock import patch

import pytest

from app import create_app
from constants import MESSAGES, SCAN_STEPS
from services.classifier import Classification

from conftest import FixedClassifier, login_as


def upload(data, filename='fern.png'):
    return {'image': (io.BytesIO(data), filename)}


def test_scan_page_lists_progress_steps(user_client):
    data = user_client.get('/scan').get_json()['data']

    assert [step['label'] for step in data['progress']] == SCAN_STEPS
    assert [step['percent'] for step in data['progress']] == [20, 40, 60, 80, 100]
    assert not any(step['done'] for step in data['progress'])


def test_scan_saves_classification(user_client, backend, user_id, png_bytes):
    response = user_client.post('/scan', data=upload(png_bytes), content_type='multipart/form-data')
    body = response.get_json()

    assert response.status_code == 201
    (row,) = backend.tables['scans']
    assert body['redirect'] == f"/results/{row['id']}"
    assert row['user_id'] == user_id
    assert row['species_slug'] == 'maidenhair-fern'
    assert row['image_url'].startswith('data:image/png;base64,')
    assert body['data']['scan']['display_name'] == 'Maidenhair Fern'
    assert all(step['done'] for step in body['data']['progress'])


def test_non_fern_scan_has_no_species(backend, png_bytes):
    app = create_app('testing', classifier=FixedClassifier(
        Classification(is_plant=False, is_fern=False, species=None, confidence=0.75)
    ))
    client = app.test_client()
    login_as(client, backend, 'rock@example.com', 'Rock.1234')

    response = client.post('/scan', data=upload(png_bytes), content_type='multipart/form-data')

    assert response.status_code == 201
    assert response.get_json()['data']['scan']['display_name'] == 'Not a Plant'
    assert backend.tables['scans'][0]['species_slug'] is None


def test_scan_waits_before_classifying(user_client, app, png_bytes):
    app.config['SCAN_COMPLETION_DELAY'] = 2.0

    with patch('routes.scan.time.sleep') as sleep:
        user_client.post('/scan', data=upload(png_bytes), content_type='multipart/form-data')

    sleep.assert_called_once_with(2.0)


def test_scan_requires_image(user_client):
    response = user_client.post('/scan', data={}, content_type='multipart/form-data')

    assert response.status_code == 400


def test_scan_rejects_wrong_extension(user_client, png_bytes):
    response = user_client.post(
        '/scan', data=upload(png_bytes, 'fern.exe'), content_type='multipart/form-data'
    )

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid file type'


def test_scan_rejects_corrupt_image(user_client, backend):
    response = user_client.post(
        '/scan', data=upload(b'not really a png'), content_type='multipart/form-data'
    )

    assert response.status_code == 400
    assert response.get_json()['error'] == MESSAGES['INVALID_IMAGE']
    assert backend.tables['scans'] == []


def test_scan_save_failure_is_reported(user_client, backend, png_bytes):
    backend.fail('scans', 'insert')

    response = user_client.post('/scan', data=upload(png_bytes), content_type='multipart/form-data')

    assert response.status_code == 500
    assert response.get_json()['error'] == 'Failed to save scan result. Please try again.'


# =============================================================================
# Results & Details
# =============================================================================

def test_results_page(user_client, backend, user_id):
    scan_id = backend.add_scan(user_id, species_slug='staghorn-fern')

    scan = user_client.get(f'/results/{scan_id}').get_json()['data']['scan']

    assert scan['display_name'] == 'Staghorn Fern'
    assert scan['details']['scientific_name'] == 'Platycerium bifurcatum'


def test_results_not_found(user_client):
    assert user_client.get('/results/does-not-exist').status_code == 404


@pytest.mark.parametrize('method, path', [
    ('get', '/results/{}'),
    ('get', '/fern/{}'),
    ('delete', '/fern/{}'),
    ('delete', '/history/{}'),
])
def test_other_users_scans_are_forbidden(user_client, backend, method, path):
    other_id = backend.add_user('other@example.com', 'Other.1234')
    scan_id = backend.add_scan(other_id)

    response = getattr(user_client, method)(path.format(scan_id))

    assert response.status_code == 403
    assert len(backend.tables['scans']) == 1


def test_fern_details_page(user_client, backend, user_id):
    scan_id = backend.add_scan(user_id, species_slug='birds-nest-fern')

    data = user_client.get(f'/fern/{scan_id}').get_json()['data']

    assert data['details']['common_name'] == "Bird's Nest Fern"
    assert len(data['details']['fun_facts']) == 4


def test_delete_from_details_returns_to_history(user_client, backend, user_id):
    scan_id = backend.add_scan(user_id)

    response = user_client.delete(f'/fern/{scan_id}')

    assert response.status_code == 302
    assert urlparse(response.headers['Location']).path == '/history'
    assert backend.tables['scans'] == []


def test_scan_page_shows_signed_in_user(user_client):
    data = user_client.get('/scan').get_json()['data']

    assert data['user']['username'] == 'fernfan'
