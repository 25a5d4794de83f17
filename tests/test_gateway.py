import pytest
from unittest.mock import patch, MagicMock

import extensions
from exceptions import ConfigurationError
from repositories import scans as scans_repo


@pytest.fixture
def fresh_gateway(monkeypatch):
    monkeypatch.setattr(extensions, '_client', None)
    yield
    extensions.reset_client()


@pytest.mark.parametrize('missing', ['SUPABASE_URL', 'SUPABASE_KEY'])
def test_missing_setting_is_fatal(fresh_gateway, monkeypatch, missing):
    monkeypatch.setenv('SUPABASE_URL', 'https://project.example.com')
    monkeypatch.setenv('SUPABASE_KEY', 'key')
    monkeypatch.delenv(missing)

    with patch('extensions.create_client') as create_client:
        with pytest.raises(ConfigurationError) as excinfo:
            extensions.get_client()

    assert missing in str(excinfo.value)
    create_client.assert_not_called()


def test_empty_setting_is_fatal(fresh_gateway, monkeypatch):
    monkeypatch.setenv('SUPABASE_URL', '')
    monkeypatch.setenv('SUPABASE_KEY', 'key')

    with pytest.raises(ConfigurationError):
        extensions.get_client()


def test_client_created_once(fresh_gateway, monkeypatch):
    monkeypatch.setenv('SUPABASE_URL', 'https://project.example.com')
    monkeypatch.setenv('SUPABASE_KEY', 'key')

    with patch('extensions.create_client', return_value=MagicMock()) as create_client:
        first = extensions.get_client()
        second = extensions.get_client()

    assert first is second
    create_client.assert_called_once_with('https://project.example.com', 'key')


def test_reset_client_rereads_environment(fresh_gateway, monkeypatch):
    monkeypatch.setenv('SUPABASE_URL', 'https://project.example.com')
    monkeypatch.setenv('SUPABASE_KEY', 'key')

    with patch('extensions.create_client', side_effect=[MagicMock(), MagicMock()]):
        first = extensions.get_client()
        extensions.reset_client()
        second = extensions.get_client()

    assert first is not second


def test_repositories_do_not_absorb_configuration_errors(fresh_gateway, monkeypatch):
    monkeypatch.delenv('SUPABASE_URL', raising=False)
    monkeypatch.delenv('SUPABASE_KEY', raising=False)

    with pytest.raises(ConfigurationError):
        scans_repo.get_all_scans()


def test_unconfigured_backend_returns_service_error(fresh_gateway, monkeypatch):
    from app import create_app

    monkeypatch.delenv('SUPABASE_URL', raising=False)
    monkeypatch.delenv('SUPABASE_KEY', raising=False)
    client = create_app('testing').test_client()

    response = client.get('/species')

    assert response.status_code == 500
    assert response.get_json()['error'] == 'Service is not configured'


def test_health_reports_missing_configuration(fresh_gateway, monkeypatch):
    from app import create_app

    monkeypatch.delenv('SUPABASE_URL', raising=False)
    client = create_app('testing').test_client()

    response = client.get('/health')

    assert response.status_code == 503
    assert response.get_json()['backend'] == 'not configured'
    assert response.get_json()['classifier'] == 'simulated'
