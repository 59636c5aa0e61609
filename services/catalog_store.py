"""
Хранилище загруженного каталога (один на процесс).

Каталог записывается один раз — когда завершится загрузка при старте —
и дальше только читается. Пока загрузка не завершилась (или упала),
catalog is None.
"""
import logging
from typing import Optional

from services.catalog_loader import CatalogLoadError, DEFAULT_STALE_DAYS, check_freshness, load_catalog
from services.catalog_models import Catalog

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(
        self,
        source: str,
        stale_days: int = DEFAULT_STALE_DAYS,
        timeout: Optional[float] = None,
    ):
        self.source = source
        self.stale_days = stale_days
        self.timeout = timeout
        self.catalog: Optional[Catalog] = None
        self.error: Optional[CatalogLoadError] = None

    @property
    def is_loaded(self) -> bool:
        return self.catalog is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def source_name(self) -> str:
        """Имя файла каталога для сообщений пользователю."""
        return self.source.rstrip("/").rsplit("/", 1)[-1] or self.source

    def set_catalog(self, catalog: Catalog) -> None:
        if self.catalog is not None:
            raise RuntimeError("Catalog is already loaded")
        check_freshness(catalog, max_age_days=self.stale_days)
        self.catalog = catalog

    async def load(self) -> Optional[Catalog]:
        """
        Загрузить каталог. Ошибка не пробрасывается: сохраняется в self.error
        и пишется в лог.
        """
        if self.catalog is not None:
            return self.catalog
        try:
            catalog = await load_catalog(self.source, timeout=self.timeout)
        except CatalogLoadError as e:
            logger.error("❌ Error loading mods data from %s: %s", self.source, e)
            self.error = e
            return None
        self.set_catalog(catalog)
        return catalog
