# portal_messaging/infrastructure/database/models/__init__.py
# importa todos os models para popular o metadata (create_all / testes)

from portal_messaging.infrastructure.database.models.user_model import UserModel
from portal_messaging.infrastructure.database.models.project_model import ProjectModel
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.conversation_participant_model import (
    ConversationParticipantModel,
)
from portal_messaging.infrastructure.database.models.message_model import MessageModel
from portal_messaging.infrastructure.database.models.message_reaction_model import MessageReactionModel

__all__ = [
    "UserModel",
    "ProjectModel",
    "ConversationModel",
    "ConversationParticipantModel",
    "MessageModel",
    "MessageReactionModel",
]
