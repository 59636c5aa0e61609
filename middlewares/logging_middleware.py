"""
Middleware для логирования входящих событий и исключений.

Цели:
- видеть каждый апдейт (сообщение/нажатие кнопки) и кто его отправил
- получать полный traceback и контекст, если упало в любом месте обработчика
- замечать медленные обработчики (долгая отрисовка результатов)
"""

import logging
import time
from typing import Callable, Dict, Any, Awaitable, Optional, Tuple

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery


logger = logging.getLogger(__name__)

SLOW_HANDLER_MS = 3000.0


def _truncate(text: Optional[str], limit: int = 200) -> Optional[str]:
    if text is None:
        return None
    text = text.replace("\n", "\\n")
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _describe(event: TelegramObject) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """(user_id, chat_id, payload) для лога."""
    if isinstance(event, Message):
        user_id = event.from_user.id if event.from_user else None
        chat_id = event.chat.id if event.chat else None
        return user_id, chat_id, _truncate(event.text or event.caption)
    if isinstance(event, CallbackQuery):
        user_id = event.from_user.id if event.from_user else None
        chat_id = event.message.chat.id if event.message and event.message.chat else None
        return user_id, chat_id, _truncate(event.data)
    return None, None, None


class LoggingMiddleware(BaseMiddleware):
    """Логирует старт/финиш обработки события + исключения с контекстом."""

    def __init__(self, log_success: bool = True, slow_ms: float = SLOW_HANDLER_MS):
        self.log_success = log_success
        self.slow_ms = slow_ms

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        started = time.monotonic()
        event_type = type(event).__name__
        user_id, chat_id, payload = _describe(event)

        # Корреляционный ID на время обработки одного события
        trace_id = f"{int(time.time() * 1000)}:{user_id or 'na'}"
        data["trace_id"] = trace_id

        logger.info(
            "IN  trace=%s type=%s user=%s chat=%s payload=%s",
            trace_id,
            event_type,
            user_id,
            chat_id,
            payload,
        )

        try:
            result = await handler(event, data)
        except Exception as e:
            ms = (time.monotonic() - started) * 1000
            logger.error(
                "ERR trace=%s type=%s user=%s chat=%s time_ms=%.1f err=%s",
                trace_id,
                event_type,
                user_id,
                chat_id,
                ms,
                repr(e),
                exc_info=True,
            )
            raise

        ms = (time.monotonic() - started) * 1000
        if ms >= self.slow_ms:
            logger.warning("SLOW trace=%s type=%s chat=%s time_ms=%.1f", trace_id, event_type, chat_id, ms)
        elif self.log_success:
            logger.info(
                "OUT trace=%s type=%s user=%s chat=%s time_ms=%.1f",
                trace_id,
                event_type,
                user_id,
                chat_id,
                ms,
            )
        return result
