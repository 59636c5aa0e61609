"""
Утилиты для работы с Telegram API: экранирование Markdown, безопасные edit/delete.
"""
import asyncio
import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest, TelegramNetworkError, TelegramRetryAfter

logger = logging.getLogger(__name__)

# Сетевые ошибки, при которых имеет смысл повторить запрос
RETRYABLE_EXC = (TelegramNetworkError, TelegramRetryAfter)
MAX_EDIT_RETRIES = 3
RETRY_DELAY = 1.0


def escape_markdown(s: str) -> str:
    """
    Экранирует спецсимволы legacy Markdown (parse_mode="Markdown") в пользовательском тексте.
    Использовать для всех полей из каталога (названия, авторы, описания).
    Telegram понимает \\ только перед _ * ` [ — остальные символы остаются как есть.
    """
    if not s or not isinstance(s, str):
        return str(s) if s is not None else ""
    for ch in "_*`[":
        s = s.replace(ch, f"\\{ch}")
    return s


def escape_url(url: str) -> str:
    """URL внутри (...) ссылки Markdown: закрывающая скобка рвёт разметку."""
    return (url or "").replace(")", "%29").replace(" ", "%20")


async def safe_edit_text(
    bot: Bot,
    chat_id: int,
    message_id: int,
    text: str,
    *,
    reply_markup=None,
    parse_mode: Optional[str] = "Markdown",
    **kwargs
) -> bool:
    """
    Безопасный edit_message_text: ловит TelegramBadRequest (message not modified, not found, parse error),
    при сетевых ошибках (ServerDisconnected, RetryAfter) повторяет запрос до MAX_EDIT_RETRIES раз.
    Возвращает True при успехе, False при ожидаемых ошибках.
    """
    last_exc = None
    for attempt in range(MAX_EDIT_RETRIES):
        try:
            await bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=reply_markup,
                parse_mode=parse_mode,
                **kwargs
            )
            return True
        except RETRYABLE_EXC as e:
            last_exc = e
            wait = getattr(e, "retry_after", None)
            if wait is None:
                wait = RETRY_DELAY
            if attempt < MAX_EDIT_RETRIES - 1:
                logger.warning("safe_edit_text: %s, retry in %.1fs (attempt %s/%s)", e, wait, attempt + 1, MAX_EDIT_RETRIES)
                await asyncio.sleep(wait)
            else:
                logger.error("safe_edit_text: failed after %s attempts: %s", MAX_EDIT_RETRIES, e)
                raise
        except TelegramBadRequest as e:
            msg = str(e).lower()
            if "message is not modified" in msg or "message to edit not found" in msg:
                logger.debug("safe_edit_text: %s", e)
                return False
            if "can't parse entities" in msg or "can't find end of the entity" in msg:
                logger.warning("safe_edit_text: Markdown parse error, retrying without parse_mode: %s", e)
                try:
                    await bot.edit_message_text(
                        text=text,
                        chat_id=chat_id,
                        message_id=message_id,
                        reply_markup=reply_markup,
                        **kwargs
                    )
                    return True
                except TelegramBadRequest as e2:
                    logger.warning("safe_edit_text: fallback failed: %s", e2)
                    return False
            raise
    if last_exc:
        raise last_exc
    return False


async def safe_delete(bot: Bot, chat_id: int, message_id: int) -> bool:
    """Удалить сообщение; уже удалённое или слишком старое (>48ч) — не ошибка."""
    try:
        await bot.delete_message(chat_id=chat_id, message_id=message_id)
        return True
    except TelegramBadRequest as e:
        logger.debug("safe_delete: chat=%s message=%s: %s", chat_id, message_id, e)
        return False
