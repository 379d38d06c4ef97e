import os

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('ALLOWED_ORIGINS', 'http://localhost:3000,https://educationelly.example.com')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from educationelly.auth import jwt_handler  # noqa: E402
from educationelly.auth.passwords import hash_password  # noqa: E402
from educationelly.core.errors import UpstreamError  # noqa: E402
from educationelly.database import Base, get_db, init_db  # noqa: E402
from educationelly.main import create_app  # noqa: E402
from educationelly.models.user import User  # noqa: E402
from educationelly.services.cache_invalidator import PurgeResult  # noqa: E402

TEACHER_EMAIL = 'teacher@example.com'
TEACHER_PASSWORD = 'password123'


class FakeCacheInvalidator:
    def __init__(self, result: PurgeResult | None = None) -> None:
        self.result = result or PurgeResult(success=True)
        self.purges = 0

    def purge_students_cache(self) -> PurgeResult:
        self.purges += 1
        return self.result

    def close(self) -> None:
        pass


class FakeAIGateway:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.error: UpstreamError | None = None
        self.replies = {
            'chat': {'response': 'Hola! How can I help?', 'model': 'llama3', 'backend': 'ollama'},
            'generate': {'response': '1. Read aloud daily.'},
            'flashcard': {'topic': 'Fractions', 'question': 'What is 1/2 + 1/4?', 'answer': '3/4'},
            'quiz': {'count': 3, 'questions': [{'question': 'Q1'}, {'question': 'Q2'}, {'question': 'Q3'}]},
            'health': {'status': 'ok'},
        }

    async def _reply(self, name: str, *args) -> dict:
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        return self.replies[name]

    async def chat(self, messages, context):
        return await self._reply('chat', messages, context)

    async def generate(self, prompt, max_tokens=300):
        return await self._reply('generate', prompt)

    async def flashcard(self, topic, content):
        return await self._reply('flashcard', topic, content)

    async def quiz(self, topic, difficulty, count):
        return await self._reply('quiz', topic, difficulty, count)

    async def health(self):
        return await self._reply('health')


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def cache_invalidator() -> FakeCacheInvalidator:
    return FakeCacheInvalidator()


@pytest.fixture
def ai_gateway() -> FakeAIGateway:
    return FakeAIGateway()


@pytest.fixture
def app(session_factory, cache_invalidator, ai_gateway):
    application = create_app(
        cache_invalidator=cache_invalidator,
        ai_gateway=ai_gateway,
        initialize_database=False,
    )

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def teacher(db_session) -> User:
    user = User(email=TEACHER_EMAIL, hashed_password=hash_password(TEACHER_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(teacher) -> dict:
    token = jwt_handler.create_access_token(subject=str(teacher.id))
    return {'Authorization': f'Bearer {token}'}
