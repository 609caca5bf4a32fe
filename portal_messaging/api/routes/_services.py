# portal_messaging/api/routes/_services.py
from __future__ import annotations

from sqlalchemy.orm import Session

from portal_messaging.config.settings import settings
from portal_messaging.infrastructure.realtime.socketio_conversation_notifier import (
    SocketIOConversationNotifier,
)
from portal_messaging.infrastructure.realtime.socketio_message_notifier import SocketIOMessageNotifier
from portal_messaging.infrastructure.storage.local_file_storage import (
    LocalFileStorage,
    LocalFileStorageConfig,
)
from portal_messaging.services.messaging_services import MessagingServices, build_messaging_services


def build_services(session: Session) -> MessagingServices:
    return build_messaging_services(
        session,
        storage=LocalFileStorage(config=LocalFileStorageConfig(base_path=settings.files_base_path)),
        message_notifier=SocketIOMessageNotifier(),
        conversation_notifier=SocketIOConversationNotifier(),
    )
