import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fileshare.config import settings
from fileshare.database import Base
from fileshare.dependencies.storage import get_storage_manager
from fileshare.main import app
from fileshare.services.auth import hash_password
from fileshare.storage.base import BackendKind
from fileshare.storage.local import LocalStorageBackend
from fileshare.storage.manager import StorageManager
from fileshare.storage.s3 import S3StorageBackend
from tests.constants import SHARE_PASSWORD
from tests.fake_s3 import FakeS3Client


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database per test, schema created from the models."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'fileshare.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def local_storage(tmp_path, session_factory):
    return LocalStorageBackend(
        base_path=str(tmp_path / "data"),
        session_factory=session_factory,
    )


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def s3_storage(fake_s3):
    # Smallest part size S3 accepts, to exercise multipart uploads cheaply
    return S3StorageBackend(bucket="test-bucket", client=fake_s3, part_size=5 * 1024 * 1024)


@pytest.fixture
def storage_manager(local_storage, s3_storage):
    return StorageManager({BackendKind.BULK: s3_storage, BackendKind.DEFAULT: local_storage})


@pytest.fixture
def client(storage_manager, monkeypatch):
    """Test client wired to the test storage manager, with a known shared password."""
    monkeypatch.setattr(settings, "SHARE_PASSWORD_HASH", hash_password(SHARE_PASSWORD))

    app.dependency_overrides[get_storage_manager] = lambda: storage_manager
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
