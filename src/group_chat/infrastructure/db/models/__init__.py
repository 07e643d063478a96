"""Import all models so Base.metadata knows every table."""
from group_chat.infrastructure.db.models.group import GroupMemberModel, GroupModel
from group_chat.infrastructure.db.models.message import MessageModel
from group_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "GroupMemberModel",
    "GroupModel",
    "MessageModel",
    "UserModel",
]
