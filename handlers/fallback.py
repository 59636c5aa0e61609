"""
Обработчик необработанных обновлений.
Подключается последним — ловит сообщения и callback, которые не попали в другие хендлеры.
"""
import logging
from aiogram import Router, types
from aiogram.exceptions import TelegramBadRequest

logger = logging.getLogger(__name__)
router = Router()


@router.message()
async def fallback_message(message: types.Message):
    """Стикеры, фото, неизвестные команды и т.п."""
    await message.answer("Send a text message to search mods, or /help.")


@router.callback_query()
async def fallback_callback(callback: types.CallbackQuery):
    """Любой callback, не обработанный другими хендлерами (устаревшие кнопки и т.п.)."""
    try:
        await callback.answer("This button is no longer active. Send /start.")
    except TelegramBadRequest as e:
        # query is too old — ответить уже нельзя
        logger.debug("fallback_callback: %s", e)
