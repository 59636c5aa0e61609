from typing import Optional, Sequence, Tuple

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from services.catalog_models import Mod

CARD_PREFIX = "mod"
CLOSE_CALLBACK = f"{CARD_PREFIX}:close"
BUTTON_NAME_LIMIT = 40


def card_callback_data(generation: int, position: int) -> str:
    """mod:<поколение результатов>:<позиция в результатах>"""
    return f"{CARD_PREFIX}:{generation}:{position}"


def parse_card_callback(data: Optional[str]) -> Optional[Tuple[int, int]]:
    """Обратное к card_callback_data. None — кнопка не карточки или битые данные."""
    if not data:
        return None
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != CARD_PREFIX:
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def _button_label(position: int, mod: Mod) -> str:
    name = mod.name
    if len(name) > BUTTON_NAME_LIMIT:
        name = name[: BUTTON_NAME_LIMIT - 1] + "…"
    return f"{position + 1}. {name}"


def get_results_kb(mods: Sequence[Mod], generation: int, first_position: int = 0) -> InlineKeyboardMarkup:
    """Кнопки карточек одного сообщения с результатами. При нажатии — детальный просмотр."""
    rows = []
    for offset, mod in enumerate(mods):
        position = first_position + offset
        rows.append([InlineKeyboardButton(
            text=_button_label(position, mod),
            callback_data=card_callback_data(generation, position)
        )])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_detail_kb(mod: Mod, link_text: str = "View on CurseForge") -> InlineKeyboardMarkup:
    """Внешняя ссылка (открывается вне чата) + закрыть."""
    rows = []
    if mod.website_url:
        rows.append([InlineKeyboardButton(text=link_text, url=mod.website_url)])
    rows.append([InlineKeyboardButton(text="✖ Close", callback_data=CLOSE_CALLBACK)])
    return InlineKeyboardMarkup(inline_keyboard=rows)
