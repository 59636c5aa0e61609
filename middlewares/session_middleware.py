"""
Middleware для dependency injection состояния просмотра каталога (BrowseSession) по чату.
"""
from typing import Callable, Dict, Any, Awaitable, Optional
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery

from services.catalog_controller import CatalogController


def _chat_id(event: TelegramObject) -> Optional[int]:
    if isinstance(event, Message):
        return event.chat.id if event.chat else None
    if isinstance(event, CallbackQuery):
        if event.message and event.message.chat:
            return event.message.chat.id
        return event.from_user.id if event.from_user else None
    return None


class BrowseSessionMiddleware(BaseMiddleware):
    """Кладёт в data["browse_session"] состояние чата (создаётся при первом обращении)."""

    def __init__(self, controller: CatalogController):
        self.controller = controller

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        chat_id = _chat_id(event)
        if chat_id is not None:
            data["browse_session"] = self.controller.session_for(chat_id)
        return await handler(event, data)
