from urllib.parse import urlparse

import pytest

from models import User
from session import guard_redirect

from conftest import login_as


def location(response):
    return urlparse(response.headers['Location']).path


def make_user(role):
    return User(id='u-1', username='u', email='u@example.com', role=role, created_at='')


# =============================================================================
# Redirect Table
# =============================================================================

@pytest.mark.parametrize('user, admin_route, expected', [
    (None, False, '/login'),
    (None, True, '/admin/login'),
    (make_user('admin'), False, '/admin'),
    (make_user('user'), True, '/admin/login'),
    (make_user('user'), False, None),
    (make_user('admin'), True, None),
])
def test_guard_redirect(user, admin_route, expected):
    assert guard_redirect(user, admin_route) == expected


# =============================================================================
# Guarded Pages
# =============================================================================

def test_anonymous_user_page_redirects_to_login(client):
    response = client.get('/dashboard')

    assert response.status_code == 302
    assert location(response) == '/login'


def test_anonymous_admin_page_redirects_to_admin_login(client):
    response = client.get('/admin/users')

    assert response.status_code == 302
    assert location(response) == '/admin/login'


def test_admin_on_user_page_redirects_to_admin_dashboard(admin_client):
    response = admin_client.get('/history')

    assert response.status_code == 302
    assert location(response) == '/admin'


def test_user_on_admin_page_redirects_to_admin_login(user_client):
    response = user_client.get('/admin')

    assert response.status_code == 302
    assert location(response) == '/admin/login'


def test_signed_in_user_sees_page(user_client):
    response = user_client.get('/dashboard')

    assert response.status_code == 200
    assert response.get_json()['data']['user']['email'] == 'fernfan@example.com'


def test_tampered_cookie_counts_as_signed_out(client):
    client.set_cookie('fernid_session', 'not-a-valid-token')

    response = client.get('/dashboard')

    assert response.status_code == 302
    assert location(response) == '/login'


def test_guard_does_not_call_backend(user_client, backend):
    calls_before = len(backend.calls)

    user_client.get('/profile')

    assert len(backend.calls) == calls_before


def test_logout_clears_session(user_client):
    response = user_client.post('/logout')

    assert response.status_code == 302
    assert location(response) == '/login'

    response = user_client.get('/dashboard')
    assert response.status_code == 302
    assert location(response) == '/login'


def test_session_carries_admin_permissions(client, backend):
    login_as(client, backend, 'content@example.com', 'Content.123', role='admin',
             permissions={'manageContent': True})

    assert client.get('/admin/species').status_code == 200
    assert client.get('/admin/users').status_code == 403
