"""
Загрузка каталога модов (mods-data.json) при старте бота.

Источник — http(s):// URL (aiohttp) или путь к файлу на диске.
Одна попытка, без ретраев: при любой ошибке поднимается CatalogLoadError,
а вызывающий код показывает пользователю сообщение вместо результатов.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

import aiohttp
from pydantic import ValidationError

from services.catalog_models import Catalog, Mod

logger = logging.getLogger(__name__)

DEFAULT_STALE_DAYS = 7


class CatalogLoadError(Exception):
    """Каталог не удалось получить или разобрать. str(e) — причина для логов."""


def is_remote_source(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


async def fetch_document(source: str, timeout: Optional[float] = None) -> bytes:
    """Получить сырое содержимое документа (одна попытка)."""
    if not is_remote_source(source):
        path = Path(source)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise CatalogLoadError(f"cannot read {path}: {e}") from e

    session_kwargs = {}
    if timeout is not None:
        session_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(**session_kwargs) as session:
            async with session.get(source) as resp:
                if not 200 <= resp.status < 300:
                    raise CatalogLoadError(f"GET {source} returned HTTP {resp.status}")
                return await resp.read()
    except aiohttp.ClientError as e:
        raise CatalogLoadError(f"GET {source} failed: {e!r}") from e
    except asyncio.TimeoutError as e:
        raise CatalogLoadError(f"GET {source} timed out") from e


def _describe_mod(raw: Any, index: int) -> str:
    if isinstance(raw, dict) and raw.get("name"):
        return f"#{index} {raw['name']!r}"
    return f"#{index}"


def parse_catalog(raw: Union[bytes, str]) -> Catalog:
    """
    Разобрать документ в Catalog.

    Ошибки уровня документа (не JSON, нет generatedAt/mods) → CatalogLoadError.
    Отдельные невалидные моды (например, без авторов) пропускаются с предупреждением.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise CatalogLoadError(f"malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise CatalogLoadError(f"expected a JSON object, got {type(data).__name__}")
    raw_mods = data.get("mods")
    if not isinstance(raw_mods, list):
        raise CatalogLoadError("field 'mods' is missing or is not a list")

    mods: List[Mod] = []
    for index, raw_mod in enumerate(raw_mods):
        try:
            mods.append(Mod.model_validate(raw_mod))
        except ValidationError as e:
            logger.warning("Skipping invalid mod %s: %s", _describe_mod(raw_mod, index), e)

    try:
        return Catalog.model_validate({"generatedAt": data.get("generatedAt"), "mods": mods})
    except ValidationError as e:
        raise CatalogLoadError(f"invalid catalog header: {e}") from e


def catalog_age_days(catalog: Catalog, now: Optional[datetime] = None) -> int:
    """Возраст каталога в полных днях."""
    now = now or datetime.now(timezone.utc)
    return (now - catalog.generated_at).days


def check_freshness(
    catalog: Catalog,
    now: Optional[datetime] = None,
    max_age_days: int = DEFAULT_STALE_DAYS,
) -> int:
    """
    Проверить свежесть данных. Только диагностика: пишет WARNING в лог,
    пользователю ничего не показывается.
    Возвращает возраст в днях.
    """
    age = catalog_age_days(catalog, now)
    if age > max_age_days:
        logger.warning("⚠ Data is %s days old. Consider regenerating.", age)
    return age


async def load_catalog(source: str, *, timeout: Optional[float] = None) -> Catalog:
    """
    Загрузить каталог из source.

    Raises:
        CatalogLoadError: сеть/файл/HTTP статус/формат документа.
    """
    logger.info("Loading mods data from: %s", source)
    raw = await fetch_document(source, timeout=timeout)
    catalog = parse_catalog(raw)
    logger.info(
        "✓ Loaded %s mods (generated at %s)",
        catalog.mod_count,
        catalog.generated_at.isoformat(),
    )
    return catalog
