"""
Rate limiting middleware: защищает бота от флуда поисковыми запросами и нажатиями кнопок.
Redis — если бот запущен в нескольких экземплярах, иначе в памяти процесса.
"""
from collections import defaultdict
from typing import Callable, Dict, Any, Awaitable, Optional
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery
import time
import logging

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = "⚠️ Too many requests. Please wait a moment."


def _user_id(event: TelegramObject) -> Optional[int]:
    if isinstance(event, (Message, CallbackQuery)) and event.from_user:
        return event.from_user.id
    return None


async def _reject(event: TelegramObject) -> None:
    if isinstance(event, CallbackQuery):
        await event.answer(TOO_MANY_REQUESTS, show_alert=True)
    elif isinstance(event, Message):
        await event.answer(TOO_MANY_REQUESTS)


class RedisRateLimitMiddleware(BaseMiddleware):
    """Ограничение количества запросов через Redis."""

    def __init__(
        self,
        redis_client,
        max_calls: int = 10,
        period: float = 60.0,
        key_prefix: str = "modbot:rate_limit:"
    ):
        """
        Args:
            redis_client: Клиент Redis (async)
            max_calls: Максимальное количество запросов за период
            period: Период в секундах
            key_prefix: Префикс для ключей Redis
        """
        self.redis = redis_client
        self.max_calls = max_calls
        self.period = int(period)
        self.key_prefix = key_prefix

    def _key(self, user_id: int) -> str:
        return f"{self.key_prefix}{user_id}"

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user_id = _user_id(event)
        if not user_id:
            return await handler(event, data)

        try:
            key = self._key(user_id)
            # INCR + EXPIRE: окно начинается с первого запроса
            current = await self.redis.incr(key)
            if current == 1:
                await self.redis.expire(key, self.period)
        except Exception as e:
            logger.warning("Rate limit error for user %s: %s", user_id, e)
            # При ошибке Redis пропускаем запрос
            return await handler(event, data)

        if current > self.max_calls:
            await _reject(event)
            return
        return await handler(event, data)


class MemoryRateLimitMiddleware(BaseMiddleware):
    """In-memory rate limiting (скользящее окно)."""

    def __init__(self, max_calls: int = 10, period: float = 60.0):
        self.max_calls = max_calls
        self.period = period
        self.calls = defaultdict(list)

    def allow(self, user_id: int, now: Optional[float] = None) -> bool:
        """Учесть запрос пользователя; False — лимит превышен."""
        now = time.time() if now is None else now
        user_calls = self.calls[user_id]
        # Удаляем старые записи
        user_calls[:] = [t for t in user_calls if now - t < self.period]
        if len(user_calls) >= self.max_calls:
            return False
        user_calls.append(now)
        return True

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user_id = _user_id(event)
        if not user_id:
            return await handler(event, data)

        if not self.allow(user_id):
            await _reject(event)
            return
        return await handler(event, data)


async def create_rate_limit_middleware(
    redis_client=None,
    max_calls: int = 10,
    period: float = 60.0
) -> RedisRateLimitMiddleware | MemoryRateLimitMiddleware:
    """
    Создать middleware для rate limiting.

    Returns:
        Экземпляр middleware (Redis или Memory)
    """
    if redis_client:
        try:
            await redis_client.ping()
            return RedisRateLimitMiddleware(redis_client, max_calls, period)
        except Exception as e:
            logger.warning("Redis not available for rate limiting, using memory: %s", e)

    return MemoryRateLimitMiddleware(max_calls, period)
