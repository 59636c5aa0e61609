import logging
from aiogram import Bot, Router, types, F
from aiogram.filters import Command, CommandObject

from keyboards.catalog_kbs import CARD_PREFIX, CLOSE_CALLBACK, parse_card_callback
from services.browse_session import BrowseSession
from services.catalog_controller import CatalogController
from services.catalog_view import TelegramCatalogView, ViewOptions
from services.formatting import format_date

logger = logging.getLogger(__name__)
router = Router()


def _view(bot: Bot, browse_session: BrowseSession, view_options: ViewOptions) -> TelegramCatalogView:
    return TelegramCatalogView(bot, browse_session, view_options)


@router.message(Command("search"))
async def cmd_search(
    message: types.Message,
    command: CommandObject,
    bot: Bot,
    controller: CatalogController,
    browse_session: BrowseSession,
    view_options: ViewOptions,
):
    """/search <текст> — то же, что отправить текст сообщением."""
    await controller.search_submitted(browse_session, command.args, _view(bot, browse_session, view_options))


@router.message(Command("info"))
async def cmd_info(message: types.Message, controller: CatalogController, view_options: ViewOptions):
    """Сколько модов в каталоге и насколько свежие данные."""
    info = controller.info()
    if info is None:
        if controller.store.failed:
            await message.answer(f"❌ {controller.load_failed_message}")
        else:
            await message.answer("⏳ Mods data not loaded yet. Please wait...")
        return

    text = (
        f"📦 Mods in catalog: {info.mod_count}\n"
        f"🕒 Generated: {format_date(info.generated_at, view_options.date_format)} "
        f"({info.age_days} days ago)"
    )
    if info.stale:
        text += "\n⚠️ The data may be outdated."
    await message.answer(text)


@router.message(F.text & ~F.text.startswith("/"))
async def text_search(
    message: types.Message,
    bot: Bot,
    controller: CatalogController,
    browse_session: BrowseSession,
    view_options: ViewOptions,
):
    """Любой текст — поисковый запрос."""
    await controller.search_submitted(browse_session, message.text, _view(bot, browse_session, view_options))


@router.callback_query(F.data == CLOSE_CALLBACK)
async def close_detail(
    callback: types.CallbackQuery,
    bot: Bot,
    controller: CatalogController,
    browse_session: BrowseSession,
    view_options: ViewOptions,
):
    await controller.close_pressed(browse_session, _view(bot, browse_session, view_options))
    await callback.answer()


@router.callback_query(F.data.startswith(f"{CARD_PREFIX}:"))
async def open_card(
    callback: types.CallbackQuery,
    bot: Bot,
    controller: CatalogController,
    browse_session: BrowseSession,
    view_options: ViewOptions,
):
    """Нажатие на карточку — детальный просмотр именно этого мода."""
    parsed = parse_card_callback(callback.data)
    if parsed is None:
        logger.warning("Bad card callback: %r", callback.data)
        await callback.answer()
        return

    generation, position = parsed
    opened = await controller.card_selected(
        browse_session, generation, position, _view(bot, browse_session, view_options)
    )
    if opened:
        await callback.answer()
    elif opened is None:
        await callback.answer("⚠️ Could not open this mod. Please try again.")
    else:
        await callback.answer("These results are outdated. Please search again.")
