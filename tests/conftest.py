import io
import uuid
import threading
import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from PIL import Image

import extensions
from app import create_app
from constants import DEFAULT_FERN_SPECIES
from services.classifier import Classification, Classifier

user_name = "fernfan"
user_email = "fernfan@example.com"
user_password = "Fern.1234"

admin_email = "admin@example.com"
admin_password = "Admin.1234"

SPECIES_FIELDS = (
    'slug', 'common_name', 'scientific_name', 'description',
    'habitat', 'care_requirements', 'fun_facts',
)


class BackendError(Exception):
    pass


# =============================================================================
# In-memory stand-in for the hosted backend client
# =============================================================================

class FakeQuery:
    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.op = 'select'
        self.columns = '*'
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, columns='*'):
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = 'insert'
        self.payload = payload
        return self

    def update(self, payload):
        self.op = 'update'
        self.payload = payload
        return self

    def delete(self):
        self.op = 'delete'
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def _join(self, row):
        row = dict(row)
        if 'fern_species(' in self.columns.replace(' ', ''):
            slug = row.get('species_slug')
            species = next(
                (s for s in self.backend.tables['fern_species'] if s['slug'] == slug),
                None
            ) if slug else None
            row['fern_species'] = (
                {field: species[field] for field in SPECIES_FIELDS} if species else None
            )
        return row

    def execute(self):
        with self.backend.lock:
            return self._execute()

    def _execute(self):
        self.backend.calls.append((self.table, self.op))
        self.backend.check(self.table, self.op)
        rows = self.backend.tables.setdefault(self.table, [])

        if self.op == 'insert':
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                row = dict(payload)
                row.setdefault('id', str(uuid.uuid4()))
                row.setdefault('created_at', self.backend.next_timestamp())
                rows.append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted)

        if self.op == 'update':
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated)

        if self.op == 'delete':
            deleted = [dict(row) for row in rows if self._matches(row)]
            self.backend.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=deleted)

        result = [self._join(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda row: row.get(column) or '', reverse=desc)
        if self.max_rows is not None:
            result = result[:self.max_rows]
        return SimpleNamespace(data=result)


class FakeAuth:
    def __init__(self, backend):
        self.backend = backend
        self.identities = {}
        self.current = None

    def add_identity(self, email, password, user_id=None):
        identity = SimpleNamespace(
            id=user_id or str(uuid.uuid4()),
            email=email,
            created_at=self.backend.next_timestamp(),
        )
        self.identities[email] = (password, identity)
        return identity

    def sign_in_with_password(self, credentials):
        self.backend.check('auth', 'sign_in')
        stored = self.identities.get(credentials['email'])
        if not stored or stored[0] != credentials['password']:
            raise BackendError('Invalid login credentials')
        self.current = stored[1]
        return SimpleNamespace(user=stored[1], session=None)

    def sign_up(self, credentials):
        self.backend.check('auth', 'sign_up')
        if credentials['email'] in self.identities:
            raise BackendError('User already registered')
        identity = self.add_identity(credentials['email'], credentials['password'])
        self.current = identity
        return SimpleNamespace(user=identity, session=None)

    def update_user(self, attributes):
        self.backend.check('auth', 'update_user')
        identity = self.current
        password, _ = self.identities[identity.email]
        self.identities[identity.email] = (attributes.get('password', password), identity)
        return SimpleNamespace(user=identity)


class FakeBucket:
    def __init__(self, backend, name):
        self.backend = backend
        self.name = name

    def upload(self, path, data, options=None):
        self.backend.check('storage', 'upload')
        self.backend.files[(self.name, path)] = (data, options)
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.example.com/{self.name}/{path}"


class FakeStorage:
    def __init__(self, backend):
        self.backend = backend

    def from_(self, bucket):
        return FakeBucket(self.backend, bucket)


class FakeSupabase:
    """
    Supports the table, auth and storage calls the repositories make.
    fail(target, op) makes matching calls raise.
    """

    def __init__(self):
        self.tables = {'profiles': [], 'scans': [], 'fern_species': []}
        self.files = {}
        self.calls = []
        self.failures = set()
        self.lock = threading.Lock()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)

    def next_timestamp(self):
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def fail(self, target, op):
        self.failures.add((target, op))

    def check(self, target, op):
        if (target, op) in self.failures:
            raise BackendError(f'{target}.{op} failed')

    def table(self, name):
        return FakeQuery(self, name)

    # Test helpers

    def seed_species(self):
        for slug, data in DEFAULT_FERN_SPECIES.items():
            self.tables['fern_species'].append({'slug': slug, **data})

    def add_user(self, email, password, username=None, role='user',
                 permissions=None, with_profile=True):
        identity = self.auth.add_identity(email, password)
        if with_profile:
            self.tables['profiles'].append({
                'id': identity.id,
                'username': username or email.split('@')[0],
                'email': email,
                'role': role,
                'created_at': identity.created_at,
                'profile_picture': None,
                'admin_permissions': permissions,
            })
        return identity.id

    def add_scan(self, user_id, is_fern=True, species_slug='boston-fern',
                 is_plant=None, confidence=0.9):
        row = {
            'id': str(uuid.uuid4()),
            'user_id': user_id,
            'image_url': 'data:image/png;base64,AAAA',
            'is_plant': is_fern if is_plant is None else is_plant,
            'is_fern': is_fern,
            'species_slug': species_slug if is_fern else None,
            'confidence': confidence,
            'created_at': self.next_timestamp(),
        }
        self.tables['scans'].append(row)
        return row['id']

    def profile(self, user_id):
        return next((row for row in self.tables['profiles'] if row['id'] == user_id), None)


class FixedClassifier(Classifier):
    name = 'fixed'

    def __init__(self, result):
        self.result = result

    def classify(self, image):
        return self.result


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def backend(monkeypatch):
    fake = FakeSupabase()
    fake.seed_species()
    monkeypatch.setattr(extensions, '_client', fake)
    monkeypatch.setenv('SUPABASE_URL', 'https://project.example.com')
    monkeypatch.setenv('SUPABASE_KEY', 'test-key')
    return fake


@pytest.fixture
def classifier():
    return FixedClassifier(Classification(
        is_plant=True, is_fern=True, species='maidenhair-fern', confidence=0.93
    ))


@pytest.fixture
def app(backend, classifier):
    app = create_app('testing', classifier=classifier)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_id(backend):
    return backend.add_user(user_email, user_password, username=user_name)


@pytest.fixture
def admin_id(backend):
    return backend.add_user(admin_email, admin_password, username='admin', role='admin')


@pytest.fixture
def user_client(client, user_id):
    response = client.post('/login', json={'email': user_email, 'password': user_password})
    assert response.status_code == 200
    return client


@pytest.fixture
def admin_client(client, admin_id):
    response = client.post('/admin/login', json={'email': admin_email, 'password': admin_password})
    assert response.status_code == 200
    return client


def login_as(client, backend, email, password, role='user', permissions=None):
    user_id = backend.add_user(email, password, role=role, permissions=permissions)
    path = '/admin/login' if role == 'admin' else '/login'
    response = client.post(path, json={'email': email, 'password': password})
    assert response.status_code == 200
    return user_id


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (64, 48), (34, 139, 34)).save(buffer, format='PNG')
    return buffer.getvalue()
