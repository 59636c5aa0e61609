import logging
from aiogram import Bot, Router, types
from aiogram.filters import Command, CommandStart

from services.browse_session import BrowseSession
from services.catalog_controller import CatalogController
from services.catalog_view import TelegramCatalogView, ViewOptions

logger = logging.getLogger(__name__)
router = Router()

WELCOME_TEXT = (
    "🔎 Mod catalog search\n\n"
    "Send any text to search mods by name, description, author or category.\n"
    "Tap a result to see details.\n\n"
    "Commands:\n"
    "/search <text> — search mods\n"
    "/info — catalog size and freshness\n"
    "/help — this message"
)


@router.message(CommandStart())
@router.message(Command("help"))
async def cmd_start(
    message: types.Message,
    bot: Bot,
    controller: CatalogController,
    browse_session: BrowseSession,
    view_options: ViewOptions,
):
    await message.answer(WELCOME_TEXT)
    # Если каталог не загрузился — сразу показываем это вместо результатов
    ready = await controller.start(browse_session, TelegramCatalogView(bot, browse_session, view_options))
    if not ready:
        logger.info("chat=%s /start while catalog state=%s", browse_session.chat_id, controller.state().value)
