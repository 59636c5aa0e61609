"""
Модели каталога модов (mods-data.json).

Формат документа:
    {"generatedAt": "2025-01-01T00:00:00Z", "mods": [{...}, ...]}

Все модели неизменяемые (frozen): после загрузки каталог только читается.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """База: camelCase в JSON, snake_case в коде, лишние поля игнорируются."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Author(CatalogModel):
    name: str


class Category(CatalogModel):
    name: str


class Logo(CatalogModel):
    thumbnail_url: str
    url: str


class ModLinks(CatalogModel):
    website_url: Optional[str] = None


def _ensure_aware(v: datetime) -> datetime:
    # Даты без часового пояса считаем UTC
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class Mod(CatalogModel):
    """Один мод каталога."""

    id: Optional[int] = None
    name: str
    summary: str
    authors: Tuple[Author, ...] = Field(..., min_length=1)
    categories: Tuple[Category, ...] = ()
    download_count: int = Field(default=0, ge=0)
    date_created: datetime
    date_modified: datetime
    logo: Optional[Logo] = None
    links: ModLinks = Field(default_factory=ModLinks)

    @field_validator("date_created", "date_modified")
    @classmethod
    def validate_dates(cls, v: datetime) -> datetime:
        return _ensure_aware(v)

    @property
    def primary_author(self) -> str:
        """Первый автор (карточка показывает только его)."""
        return self.authors[0].name

    @property
    def author_names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.authors)

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.categories)

    @property
    def website_url(self) -> Optional[str]:
        return self.links.website_url

    def thumbnail_or(self, placeholder: str) -> str:
        return self.logo.thumbnail_url if self.logo else placeholder

    def logo_or(self, placeholder: str) -> str:
        return self.logo.url if self.logo else placeholder


class Catalog(CatalogModel):
    """Загруженный документ целиком."""

    generated_at: datetime
    mods: Tuple[Mod, ...] = ()

    @field_validator("generated_at")
    @classmethod
    def validate_generated_at(cls, v: datetime) -> datetime:
        return _ensure_aware(v)

    @property
    def mod_count(self) -> int:
        return len(self.mods)
