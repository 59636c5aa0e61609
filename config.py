"""
Конфигурация бота-каталога модов с валидацией через Pydantic.
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Config(BaseSettings):
    """Конфигурация приложения с валидацией."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Bot
    BOT_TOKEN: str = Field(default="", description="Токен Telegram бота")

    @field_validator("BOT_TOKEN")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Валидация токена бота."""
        if not v:
            raise ValueError("BOT_TOKEN обязателен для работы бота")
        return v

    # Catalog
    CATALOG_URL: str = Field(
        default="mods-data.json",
        description="Откуда грузить каталог: http(s):// URL или путь к JSON файлу"
    )
    CATALOG_STALE_DAYS: int = Field(default=7, description="Через сколько дней данные считаются устаревшими")
    CATALOG_FETCH_TIMEOUT: Optional[float] = Field(
        default=None,
        description="Таймаут загрузки каталога в секундах (пусто = таймаут aiohttp по умолчанию)"
    )

    @field_validator("CATALOG_URL")
    @classmethod
    def validate_catalog_url(cls, v: str) -> str:
        """Валидация источника каталога."""
        v = v.strip()
        if not v:
            raise ValueError("CATALOG_URL не может быть пустым")
        return v

    @field_validator("CATALOG_STALE_DAYS")
    @classmethod
    def validate_stale_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("CATALOG_STALE_DAYS не может быть отрицательным")
        return v

    # Presentation
    PLACEHOLDER_THUMBNAIL_URL: str = Field(
        default="https://via.placeholder.com/300x200?text=No+Image",
        description="Картинка карточки, если у мода нет логотипа"
    )
    PLACEHOLDER_LOGO_URL: str = Field(
        default="https://via.placeholder.com/100?text=No+Image",
        description="Картинка детального просмотра, если у мода нет логотипа"
    )
    DATE_FORMAT: str = Field(default="%d.%m.%Y", description="Формат даты (strftime), без времени")
    DETAIL_LINK_TEXT: str = Field(default="View on CurseForge", description="Текст кнопки внешней ссылки")
    RESULTS_MESSAGE_LIMIT: int = Field(default=4000, description="Максимальная длина одного сообщения с результатами")

    @field_validator("RESULTS_MESSAGE_LIMIT")
    @classmethod
    def validate_results_limit(cls, v: int) -> int:
        """Telegram не принимает сообщения длиннее 4096 символов."""
        if v < 500 or v > 4096:
            raise ValueError(f"Недопустимый RESULTS_MESSAGE_LIMIT: {v}. Допустимо: 500..4096")
        return v

    # Сессии просмотра (по одной на чат, давно неактивные вытесняются)
    BROWSE_SESSIONS_MAX: int = Field(default=10000, ge=1, description="Максимум чатов с сохранёнными результатами")

    # Redis
    REDIS_HOST: str = Field(default="localhost", description="Хост Redis")
    REDIS_PORT: int = Field(default=6379, description="Порт Redis")
    REDIS_DB: int = Field(default=0, description="Номер БД Redis")
    REDIS_PASSWORD: Optional[str] = Field(default=None, description="Пароль Redis")
    REDIS_ENABLED: bool = Field(default=False, description="Использовать Redis для FSM и rate limit")

    # Rate Limiting (лимит на одного пользователя за период)
    RATE_LIMIT_MESSAGE_MAX: int = Field(default=30, description="Максимум сообщений за период (на пользователя)")
    RATE_LIMIT_CALLBACK_MAX: int = Field(default=120, description="Максимум callback за период (на пользователя)")
    RATE_LIMIT_PERIOD: float = Field(default=60.0, description="Период rate limit в секундах")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Уровень логирования")
    LOG_FILE: str = Field(default="bot.log", description="Файл лога (ротация по 10 МБ)")
    DEBUG: bool = Field(default=False, description="Режим отладки")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Валидация уровня логирования."""
        v = v.upper()
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v not in valid_levels:
            raise ValueError(f"Неподдерживаемый уровень логирования: {v}. Допустимые: {valid_levels}")
        return v


# Создаем экземпляр конфигурации с валидацией
try:
    config = Config()
except Exception as e:
    import sys
    print(f"❌ Ошибка загрузки конфигурации: {e}", file=sys.stderr)
    sys.exit(1)
