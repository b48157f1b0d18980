import importlib.util
from pathlib import Path

import pytest

from sirtis.core import init_system
from sirtis.core.config import settings
from sirtis.models.user import User, UserRole

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "create_admin.py"


@pytest.fixture
def shared_session(monkeypatch, db_session):
    monkeypatch.setattr(db_session, "close", lambda: None)
    return db_session


def test_bootstrap_admin_created_once(monkeypatch, shared_session):
    monkeypatch.setattr(settings, "bootstrap_admin_email", "root@sirtis.org")
    monkeypatch.setattr(settings, "bootstrap_admin_password", "RootPassword123!")
    monkeypatch.setattr(init_system, "SessionLocal", lambda: shared_session)

    init_system.init_system_data()
    init_system.init_system_data()

    admins = shared_session.query(User).filter(User.email == "root@sirtis.org").all()
    assert len(admins) == 1
    assert admins[0].role == UserRole.HR_ADMIN


def test_bootstrap_skipped_without_credentials(monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_email", None)

    def unexpected_session():
        raise AssertionError("no session should be opened")

    monkeypatch.setattr(init_system, "SessionLocal", unexpected_session)
    init_system.init_system_data()


def test_create_admin_script(monkeypatch, shared_session):
    spec = importlib.util.spec_from_file_location("create_admin_script", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "SessionLocal", lambda: shared_session)
    monkeypatch.setattr(module, "init_db", lambda: None)

    assert module.create_admin_user("ops@sirtis.org", "OpsPassword123!", UserRole.SUPER_ADMIN) is True
    assert module.create_admin_user("ops@sirtis.org", "OpsPassword123!") is False
    assert shared_session.query(User).filter(User.email == "ops@sirtis.org").one().is_admin
