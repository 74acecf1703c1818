import os, sys, pytest
# Ensure backend directory is on path so 'ehs_roles' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from ehs_roles import create_app, get_db
from ehs_roles.services.role_store import MemoryRoleStore
from ehs_roles.services.roles import RoleRepository

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
    'AUTO_CREATE_SCHEMA': True,
    'TESTING': True,
}


@pytest.fixture()
def make_app():
    def _make(**overrides):
        return create_app({**TEST_CONFIG, **overrides})
    return _make


@pytest.fixture()
def app_instance(make_app):
    # fresh in-memory database and role repository per test
    app = make_app()
    yield app
    with app.app_context():
        get_db().close()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def repo():
    """Seeded repository over a process-local store."""
    return RoleRepository(MemoryRoleStore()).initialize()


class FailingStore(MemoryRoleStore):
    """Loads fine, refuses every write."""

    def save(self, payload):
        from ehs_roles.services.errors import StoreWriteError
        raise StoreWriteError('disk full')


@pytest.fixture()
def failing_store():
    return FailingStore()
