import itertools
import json
import os
from datetime import datetime, timedelta

# The app creates its tables on import; keep that away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

import fakeredis
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from ewm.clients.stats import StatsClient, get_stats_client
from ewm.core.celery_config import celery_app
from ewm.database.db import Base, get_db
from ewm.main import app
from ewm.schemas.events import EventCreate
from ewm.services import directory
from ewm.services import events as event_service

# Frozen "now" of every test
NOW = datetime(2030, 6, 1, 12, 0, 0)


class StatsCollector:
    """In-process statistics collector served through ``httpx.MockTransport``."""

    def __init__(self):
        self.views: dict[str, int] = {}
        self.hits: list[dict] = []
        self.queries: list[httpx.Request] = []
        self.down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ReadTimeout("collector did not answer", request=request)
        if request.url.path == "/hit":
            self.hits.append(json.loads(request.content))
            return httpx.Response(201)
        if request.url.path == "/stats":
            self.queries.append(request)
            uris = request.url.params.get_list("uris")
            return httpx.Response(
                200,
                json=[
                    {"app": "ewm-main-service", "uri": uri, "hits": self.views[uri]}
                    for uri in uris
                    if uri in self.views
                ],
            )
        return httpx.Response(404)

    def client(self) -> StatsClient:
        return StatsClient(base_url="http://stats.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def frozen_now(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("ewm.core.clock.utcnow", lambda: NOW)
    return NOW


@pytest.fixture
def engine(tmp_path):
    # A file database, so every thread of the concurrency tests gets its own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ewm_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture(autouse=True)
def redis_client(fake_redis, monkeypatch: pytest.MonkeyPatch):
    """Route the per-event locks to fakeredis."""
    monkeypatch.setattr("ewm.core.locks.get_redis_client", lambda: fake_redis)
    return fake_redis


@pytest.fixture
def stats_collector() -> StatsCollector:
    return StatsCollector()


@pytest.fixture
def stats(stats_collector: StatsCollector) -> StatsClient:
    return stats_collector.client()


@pytest.fixture(autouse=True)
def eager_celery(stats: StatsClient, monkeypatch: pytest.MonkeyPatch):
    celery_app.conf.task_always_eager = True
    monkeypatch.setattr("ewm.tasks.get_stats_client", lambda: stats)
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture
def client(session_factory, stats: StatsClient):
    def override_get_db():
        db: Session = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stats_client] = lambda: stats
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    counter = itertools.count(1)

    def _make(name: str = ""):
        n = next(counter)
        return directory.create_user(db_session, name=name or f"user{n}", email=f"user{n}@example.com")

    return _make


@pytest.fixture
def category(db_session: Session):
    return directory.create_category(db_session, name="Concerts")


def event_draft(category_id: int, **fields) -> EventCreate:
    data = {
        "title": "Open air",
        "annotation": "An evening of music in the park",
        "description": "Bring a blanket, the concert starts at sunset and lasts three hours.",
        "category": category_id,
        "event_date": NOW + timedelta(days=7),
        "location": {"lat": 55.75, "lon": 37.62},
        "paid": False,
        "participant_limit": 0,
        "request_moderation": True,
    }
    data.update(fields)
    return EventCreate(**data)


@pytest.fixture
def make_event(db_session: Session, category):
    """Create an event owned by ``initiator``, published unless told otherwise."""

    def _make(initiator, publish: bool = True, **fields):
        event = event_service.create_event(
            db_session, user_id=initiator.id, draft=event_draft(category.id, **fields)
        )
        if publish:
            event = event_service.publish_event(db_session, event_id=event.id)
        return event

    return _make
