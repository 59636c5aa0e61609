"""
Поиск по каталогу модов: название, описание, авторы, категории.

Чистая синхронная функция без I/O: подстрока без учёта регистра,
порядок результатов = порядок каталога.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from services.catalog_models import Catalog, Mod


class MatchStatus(str, enum.Enum):
    NOT_READY = "not_ready"
    EMPTY_QUERY = "empty_query"
    NO_MATCHES = "no_matches"
    MATCHES = "matches"


@dataclass(frozen=True)
class MatchResult:
    status: MatchStatus
    items: Tuple[Mod, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is MatchStatus.MATCHES


NOT_READY = MatchResult(MatchStatus.NOT_READY)
EMPTY_QUERY = MatchResult(MatchStatus.EMPTY_QUERY)
NO_MATCHES = MatchResult(MatchStatus.NO_MATCHES)


def normalize_query(raw_query: Optional[str]) -> str:
    return (raw_query or "").strip().casefold()


def mod_matches(mod: Mod, query: str) -> bool:
    """query уже нормализован (normalize_query)."""
    if query in mod.name.casefold() or query in mod.summary.casefold():
        return True
    if any(query in author.name.casefold() for author in mod.authors):
        return True
    return any(query in category.name.casefold() for category in mod.categories)


def search_catalog(catalog: Optional[Catalog], raw_query: Optional[str]) -> MatchResult:
    """
    Поиск модов по запросу.

    - каталог ещё не загружен → NOT_READY
    - пустой запрос (или только пробелы) → EMPTY_QUERY
    - ничего не найдено → NO_MATCHES
    """
    if catalog is None:
        return NOT_READY
    q = normalize_query(raw_query)
    if not q:
        return EMPTY_QUERY
    matched = tuple(mod for mod in catalog.mods if mod_matches(mod, q))
    if not matched:
        return NO_MATCHES
    return MatchResult(MatchStatus.MATCHES, matched)
