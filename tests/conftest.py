"""
Test configuration and fixtures
"""
import os
import tempfile
from typing import Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Settings are read at import time
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='material-uploads-')

from app.main import app
from app.db.core import get_session
from app.db.schema import User, UserRole, DropdownOption, DropdownType
from app.services.password import get_password_hash
from app.utils.file_storage import ImageStorage, get_image_storage

fake = Faker()

TEST_PASSWORD = 'testpassword123'


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> ImageStorage:
    return ImageStorage(tmp_path / 'uploads')


@pytest.fixture
def client(engine, storage) -> Generator[TestClient, None, None]:
    """Anonymous client wired to the test database and upload dir"""
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_image_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(session: Session) -> User:
    user = User(
        email=fake.unique.email().lower(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        name=fake.name(),
        role=UserRole.USER,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def auth_client(client: TestClient, test_user: User) -> TestClient:
    """Client holding a valid session cookie"""
    response = client.post(
        '/api/auth/login',
        json={'email': test_user.email, 'password': TEST_PASSWORD}
    )
    assert response.status_code == 200
    return client


def make_option(session: Session, dropdown_type: DropdownType, label: str, value: str) -> DropdownOption:
    option = DropdownOption(type=dropdown_type, label=label, value=value)
    session.add(option)
    session.commit()
    session.refresh(option)
    return option


@pytest.fixture
def division(session: Session) -> DropdownOption:
    return make_option(session, DropdownType.DIVISION, 'IT', 'it')


@pytest.fixture
def placement(session: Session) -> DropdownOption:
    return make_option(session, DropdownType.PLACEMENT, 'Warehouse A', 'warehouse-a')


@pytest.fixture
def material(auth_client: TestClient, division, placement) -> dict:
    response = auth_client.post('/api/materials', json={
        'materialName': 'Cable',
        'materialNumber': 'M-001',
        'divisionId': str(division.id),
        'placementId': str(placement.id),
        'function': 'Network cabling',
    })
    assert response.status_code == 201
    return response.json()


def png(name: str = 'photo.png', size: int = 64):
    """A multipart tuple for a small PNG upload"""
    return ('images', (name, b'\x89PNG\r\n\x1a\n' + b'\0' * size, 'image/png'))
