# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any

import pytest
from sqlalchemy.orm import Session, sessionmaker

# banco em memória e Socket.IO sem eventlet, antes de importar o app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SOCKETIO_ASYNC_MODE"] = "threading"
os.environ["JWT_SECRET"] = "test-secret"

from portal_messaging.config.settings import settings  # noqa: E402
from portal_messaging.infrastructure.database.base_model import BaseModel  # noqa: E402
from portal_messaging.infrastructure.database.models import ProjectModel, UserModel  # noqa: E402
from portal_messaging.infrastructure.database.session import create_tables, get_engine  # noqa: E402
from portal_messaging.infrastructure.security.jwt_provider import JwtProvider  # noqa: E402
from portal_messaging.infrastructure.storage.local_file_storage import (  # noqa: E402
    LocalFileStorage,
    LocalFileStorageConfig,
)
from portal_messaging.services.messaging_services import (  # noqa: E402
    MessagingServices,
    build_messaging_services,
)

_USER_COUNTER = count(1)

create_tables()


class TickingClock:
    """Relógio determinístico: cada leitura avança `step`."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    """Implementa MessageNotifier e ConversationNotifier guardando os eventos."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def notify_message_created(self, event) -> None:
        self.events.append(("message:new", event))

    def notify_message_updated(self, event) -> None:
        self.events.append(("message:updated", event))

    def notify_message_deleted(self, event) -> None:
        self.events.append(("message:deleted", event))

    def notify_reactions_changed(self, event) -> None:
        self.events.append(("message:reactions", event))

    def notify_conversation_created(self, event) -> None:
        self.events.append(("conversation:new", event))

    def notify_conversation_read(self, event) -> None:
        self.events.append(("conversation:read", event))


@pytest.fixture(autouse=True)
def _clean_tables() -> Iterator[None]:
    yield
    # cada teste começa com o banco vazio, mesmo se houve commit
    with get_engine().begin() as conn:
        for table in reversed(BaseModel.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(autouse=True)
def _files_in_tmp(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "files_base_path", str(tmp_path / "uploads"))


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def session() -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=get_engine(),
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    s = SessionLocal()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture()
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(config=LocalFileStorageConfig(base_path=str(tmp_path / "files")))


@pytest.fixture()
def services(session, storage, notifier, clock) -> MessagingServices:
    return build_messaging_services(
        session,
        storage=storage,
        message_notifier=notifier,
        conversation_notifier=notifier,
        clock=clock,
    )


def make_user(session: Session, *, role: str, first_name: str | None = None, last_name: str | None = None,
              last_login_at: datetime | None = None) -> UserModel:
    n = next(_USER_COUNTER)
    user = UserModel(
        username=f"{role}{n}",
        email=f"{role}{n}@example.com",
        first_name=first_name,
        last_name=last_name,
        role=role,
        last_login_at=last_login_at,
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture()
def freelancer(session, clock) -> UserModel:
    return make_user(session, role="freelancer", first_name="Ana", last_name="Lima", last_login_at=clock.now)


@pytest.fixture()
def client_user(session) -> UserModel:
    return make_user(session, role="client")


@pytest.fixture()
def outsider(session) -> UserModel:
    return make_user(session, role="client")


@pytest.fixture()
def project(session) -> ProjectModel:
    p = ProjectModel(title="Website redesign", description="New landing page")
    session.add(p)
    session.flush()
    return p


@pytest.fixture()
def conversation(services, freelancer, client_user):
    """Conversa iniciada pelo freelancer com uma mensagem."""
    return services.conversations.start_conversation(
        initiator_id=freelancer.id,
        participant_id=client_user.id,
        initial_message="Hello there",
    )


def auth_header(user_id: int) -> dict[str, str]:
    token = JwtProvider().issue_access_token(subject=user_id)
    return {"Authorization": f"Bearer {token}"}
