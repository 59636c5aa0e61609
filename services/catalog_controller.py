"""
Контроллер просмотра каталога.

Состояния: UNLOADED → READY → (SEARCHING ⇄ READY).
UNLOADED — пока каталог не загружен (в том числе если загрузка упала).

События: отправка запроса, выбор карточки, закрытие детального просмотра
(кнопкой или нажатием «мимо» открытого просмотра). Никакая ошибка не выходит
за пределы контроллера: всё сводится к сообщению в области результатов.
Контроллер не знает про Telegram — рисует через CatalogView.
"""
import enum
from collections import OrderedDict
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from services.browse_session import BrowseSession
from services.catalog_loader import catalog_age_days
from services.catalog_search import MatchResult, MatchStatus, search_catalog
from services.catalog_store import CatalogStore
from services.catalog_view import CatalogView

logger = logging.getLogger(__name__)

NOT_READY_MESSAGE = "Mods data not loaded yet. Please wait..."
EMPTY_QUERY_MESSAGE = "Please enter a search term."
NO_MATCHES_MESSAGE = "No mods found matching your search."
SEARCH_FAILED_MESSAGE = "An error occurred while searching mods."
LOAD_FAILED_MESSAGE = "Failed to load mods data. Please make sure {source} exists and is valid."

DEFAULT_MAX_SESSIONS = 10000

EMPTY_MESSAGES = {
    MatchStatus.NOT_READY: NOT_READY_MESSAGE,
    MatchStatus.EMPTY_QUERY: EMPTY_QUERY_MESSAGE,
    MatchStatus.NO_MATCHES: NO_MATCHES_MESSAGE,
}


class ControllerState(str, enum.Enum):
    UNLOADED = "unloaded"
    READY = "ready"
    SEARCHING = "searching"


@dataclass(frozen=True)
class CatalogInfo:
    mod_count: int
    generated_at: datetime
    age_days: int
    stale: bool


class CatalogController:
    def __init__(self, store: CatalogStore, max_sessions: int = DEFAULT_MAX_SESSIONS):
        self.store = store
        self.max_sessions = max_sessions
        # LRU: давно молчащие чаты вытесняются вместе со своими результатами
        self._sessions: "OrderedDict[int, BrowseSession]" = OrderedDict()

    def session_for(self, chat_id: int) -> BrowseSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = self._sessions[chat_id] = BrowseSession(chat_id=chat_id)
            while len(self._sessions) > self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.debug("chat=%s browse session evicted", evicted_id)
        else:
            self._sessions.move_to_end(chat_id)
        return session

    def state(self, session: Optional[BrowseSession] = None) -> ControllerState:
        if not self.store.is_loaded:
            return ControllerState.UNLOADED
        if session is not None and session.searching:
            return ControllerState.SEARCHING
        return ControllerState.READY

    @property
    def load_failed_message(self) -> str:
        return LOAD_FAILED_MESSAGE.format(source=self.store.source_name)

    async def start(self, session: BrowseSession, view: CatalogView) -> bool:
        """
        /start: если каталог не загрузился — показать причину в области результатов.
        Возвращает True, если каталог готов к поиску.
        """
        if self.store.failed:
            try:
                await view.render_empty(self.load_failed_message)
            except Exception as e:
                logger.error("chat=%s cannot render load failure: %r", session.chat_id, e, exc_info=True)
            return False
        return self.store.is_loaded

    async def search_submitted(self, session: BrowseSession, text: Optional[str], view: CatalogView) -> Optional[MatchResult]:
        """Поиск: сначала индикатор загрузки, затем результат или сообщение."""
        async with session.lock:
            session.searching = True
            try:
                await view.render_loading()
                result = search_catalog(self.store.catalog, text)
                session.replace_results((text or "").strip(), result.items)
                logger.info(
                    "chat=%s search=%r status=%s found=%s",
                    session.chat_id,
                    session.query,
                    result.status.value,
                    len(result.items),
                )
                if result.found:
                    await view.render_results(result.items)
                else:
                    await view.render_empty(EMPTY_MESSAGES[result.status])
                return result
            except Exception as e:
                logger.error("chat=%s search failed: %r", session.chat_id, e, exc_info=True)
                try:
                    await view.render_empty(SEARCH_FAILED_MESSAGE)
                except Exception as render_error:
                    logger.error("chat=%s cannot render search error: %r", session.chat_id, render_error)
                return None
            finally:
                session.searching = False

    async def card_selected(self, session: BrowseSession, generation: int, position: int, view: CatalogView) -> Optional[bool]:
        """
        Детальный просмотр мода, привязанного к карточке.
        Устаревшая карточка (прошлый поиск) считается нажатием мимо открытого просмотра.
        True — открыт, False — карточка устарела, None — не удалось отрисовать.
        """
        async with session.lock:
            mod = session.resolve_card(generation, position)
            if mod is None:
                logger.info("chat=%s stale card %s:%s", session.chat_id, generation, position)
                if session.detail_open:
                    await self._close(session, view)
                return False
            try:
                await view.render_detail(mod)
            except Exception as e:
                logger.error("chat=%s cannot open %r: %r", session.chat_id, mod.name, e, exc_info=True)
                await self._close(session, view)
                return None
            session.detail = mod
            return True

    async def close_pressed(self, session: BrowseSession, view: CatalogView) -> None:
        async with session.lock:
            await self._close(session, view)

    async def outside_activated(self, session: BrowseSession, view: CatalogView) -> bool:
        """Нажатие вне детального просмотра закрывает его, только если он открыт."""
        async with session.lock:
            if not session.detail_open:
                return False
            await self._close(session, view)
            return True

    async def _close(self, session: BrowseSession, view: CatalogView) -> None:
        session.detail = None
        try:
            await view.dismiss_detail()
        except Exception as e:
            logger.error("chat=%s cannot dismiss detail: %r", session.chat_id, e, exc_info=True)

    def info(self, now: Optional[datetime] = None) -> Optional[CatalogInfo]:
        catalog = self.store.catalog
        if catalog is None:
            return None
        age = catalog_age_days(catalog, now)
        return CatalogInfo(
            mod_count=catalog.mod_count,
            generated_at=catalog.generated_at,
            age_days=age,
            stale=age > self.store.stale_days,
        )
