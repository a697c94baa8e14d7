"""
Filters for bot handlers
"""
import logging

from aiogram.enums import ChatMemberStatus, ChatType
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Filter
from aiogram.types import Message

from config import settings

logger = logging.getLogger(__name__)

MANAGER_STATUSES = (ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.CREATOR)


class CanManageChat(Filter):
    """Lets through configured bot admins and administrators of the chat"""

    async def __call__(self, message: Message) -> bool:
        """
        Check whether the sender may change chat-wide settings

        Args:
            message: Incoming message

        Returns:
            True for ids in ADMIN_CHAT_IDS or group administrators
        """
        user = message.from_user
        if user is None:
            return False
        if user.id in settings.ADMIN_CHAT_IDS:
            return True
        if message.chat.type == ChatType.PRIVATE or message.bot is None:
            return False

        try:
            member = await message.bot.get_chat_member(message.chat.id, user.id)
        except TelegramAPIError as exc:
            logger.warning("Cannot check rights of %s in %s: %s", user.id, message.chat.id, exc)
            return False
        return member.status in MANAGER_STATUSES
