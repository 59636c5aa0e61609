"""
Отображение каталога.

CatalogView — то, что нужно контроллеру от представления (без привязки к Telegram).
TelegramCatalogView — реализация для чата: «область результатов» — сообщение(я) бота,
которое редактируется на месте; детальный просмотр — отдельное сообщение с кнопкой закрытия.
Каждая операция полностью заменяет то, что рисовала раньше.
"""
import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Tuple

from aiogram import Bot
from aiogram.types import InlineKeyboardMarkup

from keyboards.catalog_kbs import get_detail_kb, get_results_kb
from services.browse_session import BrowseSession
from services.catalog_models import Mod
from services.formatting import DEFAULT_DATE_FORMAT, format_date, format_downloads
from services.telegram_utils import escape_markdown, escape_url, safe_delete, safe_edit_text

logger = logging.getLogger(__name__)

LOADING_TEXT = "⏳ Searching..."
# Невидимый символ для ссылки-превью (картинка над текстом)
HIDDEN_LINK_TEXT = "\u200b"


class CatalogView(Protocol):
    async def render_loading(self) -> None: ...

    async def render_empty(self, message: str) -> None: ...

    async def render_results(self, mods: Sequence[Mod]) -> None: ...

    async def render_detail(self, mod: Mod) -> None: ...

    async def dismiss_detail(self) -> None: ...


@dataclass(frozen=True)
class ViewOptions:
    thumbnail_placeholder: str = "https://via.placeholder.com/300x200?text=No+Image"
    logo_placeholder: str = "https://via.placeholder.com/100?text=No+Image"
    date_format: str = DEFAULT_DATE_FORMAT
    link_text: str = "View on CurseForge"
    message_limit: int = 4000
    card_summary_limit: int = 300
    detail_summary_limit: int = 3000
    # Telegram: не больше 100 кнопок на клавиатуру
    max_cards_per_message: int = 50

    @classmethod
    def from_config(cls, config) -> "ViewOptions":
        return cls(
            thumbnail_placeholder=config.PLACEHOLDER_THUMBNAIL_URL,
            logo_placeholder=config.PLACEHOLDER_LOGO_URL,
            date_format=config.DATE_FORMAT,
            link_text=config.DETAIL_LINK_TEXT,
            message_limit=config.RESULTS_MESSAGE_LIMIT,
        )


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def build_card_text(mod: Mod, position: int, options: ViewOptions) -> str:
    """Карточка: картинка, название, первый автор, описание, загрузки, дата обновления."""
    thumb = escape_url(mod.thumbnail_or(options.thumbnail_placeholder))
    return (
        f"[🖼]({thumb}) *{position + 1}.* {escape_markdown(mod.name)}\n"
        f"by {escape_markdown(mod.primary_author)}\n"
        f"{escape_markdown(_clip(mod.summary, options.card_summary_limit))}\n"
        f"⬇ {format_downloads(mod.download_count)}  📅 {format_date(mod.date_modified, options.date_format)}"
    )


def build_results_messages(
    mods: Sequence[Mod],
    generation: int,
    options: ViewOptions,
) -> List[Tuple[str, InlineKeyboardMarkup]]:
    """
    Разбить карточки на сообщения по лимиту длины Telegram.
    У каждого сообщения — кнопки только его карточек (позиции сквозные).
    """
    header = f"🔎 Found {len(mods)} mods:\n\n"
    chunks: List[Tuple[str, InlineKeyboardMarkup]] = []
    text = header
    chunk_mods: List[Mod] = []
    first_position = 0

    for position, mod in enumerate(mods):
        card = build_card_text(mod, position, options)
        sep = "\n\n" if chunk_mods else ""
        too_long = len(text) + len(sep) + len(card) > options.message_limit
        if chunk_mods and (too_long or len(chunk_mods) >= options.max_cards_per_message):
            chunks.append((text, get_results_kb(chunk_mods, generation, first_position)))
            text, sep, chunk_mods, first_position = "", "", [], position
        text += sep + card
        chunk_mods.append(mod)

    if chunk_mods:
        chunks.append((text, get_results_kb(chunk_mods, generation, first_position)))
    return chunks


def build_detail_text(mod: Mod, options: ViewOptions) -> str:
    logo = escape_url(mod.logo_or(options.logo_placeholder))
    authors = escape_markdown(", ".join(mod.author_names))
    categories = escape_markdown(", ".join(mod.category_names)) or "—"
    created = format_date(mod.date_created, options.date_format)
    updated = format_date(mod.date_modified, options.date_format)
    return (
        f"[{HIDDEN_LINK_TEXT}]({logo})📦 {escape_markdown(mod.name)}\n"
        f"by {authors}\n\n"
        f"*Categories:* {categories}\n"
        f"*Downloads:* {format_downloads(mod.download_count)}\n"
        f"*Created:* {created} | *Updated:* {updated}\n\n"
        f"{escape_markdown(_clip(mod.summary, options.detail_summary_limit))}"
    )


class TelegramCatalogView:
    """
    Представление для одного чата. id своих сообщений хранит в session.surface:
    - "results": список id сообщений области результатов
    - "detail": id сообщения детального просмотра
    """

    def __init__(self, bot: Bot, session: BrowseSession, options: ViewOptions = ViewOptions()):
        self.bot = bot
        self.session = session
        self.options = options

    @property
    def chat_id(self) -> int:
        return self.session.chat_id

    @property
    def surface(self) -> dict:
        return self.session.surface

    async def _send(self, text: str, reply_markup=None, parse_mode="Markdown") -> int:
        message = await self.bot.send_message(
            chat_id=self.chat_id,
            text=text,
            reply_markup=reply_markup,
            parse_mode=parse_mode,
        )
        return message.message_id

    async def _replace_region(self, chunks: Sequence[Tuple[str, InlineKeyboardMarkup]]) -> None:
        """Переписать область результатов: лишние сообщения удалить, недостающие отправить."""
        old_ids = list(self.surface.get("results") or [])
        new_ids = []
        for index, (text, kb) in enumerate(chunks):
            if index < len(old_ids):
                await safe_edit_text(self.bot, self.chat_id, old_ids[index], text, reply_markup=kb)
                new_ids.append(old_ids[index])
            else:
                new_ids.append(await self._send(text, reply_markup=kb))
        for message_id in old_ids[len(chunks):]:
            await safe_delete(self.bot, self.chat_id, message_id)
        self.surface["results"] = new_ids

    async def render_loading(self) -> None:
        # Новый поиск — новая область внизу чата, старая удаляется
        for message_id in self.surface.get("results") or []:
            await safe_delete(self.bot, self.chat_id, message_id)
        self.surface["results"] = [await self._send(LOADING_TEXT, parse_mode=None)]

    async def render_empty(self, message: str) -> None:
        await self._replace_region([(f"ℹ️ {escape_markdown(message)}", None)])

    async def render_results(self, mods: Sequence[Mod]) -> None:
        chunks = build_results_messages(mods, self.session.generation, self.options)
        logger.debug("chat=%s: %s mods in %s messages", self.chat_id, len(mods), len(chunks))
        await self._replace_region(chunks)

    async def render_detail(self, mod: Mod) -> None:
        await self.dismiss_detail()
        self.surface["detail"] = await self._send(
            build_detail_text(mod, self.options),
            reply_markup=get_detail_kb(mod, self.options.link_text),
        )

    async def dismiss_detail(self) -> None:
        message_id = self.surface.pop("detail", None)
        if message_id is not None:
            await safe_delete(self.bot, self.chat_id, message_id)
