"""
Состояние просмотра каталога в одном чате: текущий запрос, результаты,
открытый детальный просмотр.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from services.catalog_models import Mod


@dataclass
class BrowseSession:
    chat_id: int
    query: str = ""
    results: Tuple[Mod, ...] = ()
    # Растёт с каждым поиском: кнопки карточек прошлых поисков перестают совпадать
    generation: int = 0
    detail: Optional[Mod] = None
    searching: bool = False
    # Служебные данные представления (id сообщений и т.п.), контроллер их не читает
    surface: Dict[str, Any] = field(default_factory=dict)
    # aiogram обрабатывает апдейты параллельно; события одного чата идут по очереди
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def detail_open(self) -> bool:
        return self.detail is not None

    def replace_results(self, query: str, results: Tuple[Mod, ...]) -> None:
        self.query = query
        self.results = results
        self.generation += 1

    def resolve_card(self, generation: int, position: int) -> Optional[Mod]:
        """Мод, привязанный к кнопке карточки, или None для устаревших/чужих кнопок."""
        if generation != self.generation:
            return None
        if not 0 <= position < len(self.results):
            return None
        return self.results[position]
