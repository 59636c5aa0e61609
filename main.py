import asyncio
import logging
import sys
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from aiogram import Bot, Dispatcher
from aiogram.types import ErrorEvent
from aiogram.exceptions import TelegramBadRequest, TelegramNetworkError, TelegramServerError, TelegramRetryAfter
from config import config
from handlers import start, catalog, fallback
from middlewares.logging_middleware import LoggingMiddleware
from middlewares.rate_limit import create_rate_limit_middleware
from middlewares.session_middleware import BrowseSessionMiddleware
from services.catalog_controller import CatalogController
from services.catalog_store import CatalogStore
from services.catalog_view import ViewOptions

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """stdout + файл с ротацией."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            RotatingFileHandler(
                config.LOG_FILE,
                maxBytes=10*1024*1024,  # 10 MB
                backupCount=5,
                encoding='utf-8'
            )
        ]
    )
    if not config.DEBUG:
        logging.getLogger("aiogram.event").setLevel(logging.WARNING)


_lock_handle = None


def acquire_single_instance_lock() -> None:
    """
    Локальная защита от запуска двух экземпляров бота на одной машине.
    TelegramConflictError чаще всего возникает именно из-за этого.
    """
    global _lock_handle
    lock_path = Path(__file__).resolve().parent / ".bot.lock"
    f = open(lock_path, "a+", encoding="utf-8")
    try:
        if os.name == "nt":
            import msvcrt  # type: ignore
            msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            import fcntl  # type: ignore
            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        f.close()
        raise RuntimeError(
            "Похоже, бот уже запущен на этой машине (занят .bot.lock). "
            "Остановите другие экземпляры, иначе будет TelegramConflictError."
        )
    _lock_handle = f


def setup_asyncio_exception_logging() -> None:
    """
    Ловит исключения из "фоновых" задач asyncio (Task exception was never retrieved),
    которые не проходят через aiogram handlers/errors.
    """
    loop = asyncio.get_running_loop()

    def _handler(loop: asyncio.AbstractEventLoop, context: dict):
        msg = context.get("message", "asyncio exception")
        exc = context.get("exception")
        logger.error("ASYNCIO %s", msg, exc_info=exc)

    loop.set_exception_handler(_handler)


async def connect_redis():
    """Redis для rate limit (если включён и доступен), иначе None."""
    if not config.REDIS_ENABLED:
        return None
    try:
        import redis.asyncio as redis
        redis_client = redis.Redis(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            db=config.REDIS_DB,
            password=config.REDIS_PASSWORD,
            decode_responses=False
        )
        await redis_client.ping()
        logger.info("Using Redis for rate limiting")
        return redis_client
    except Exception as e:
        logger.warning(f"Redis not available, using memory: {e}")
        return None


def build_dispatcher(controller: CatalogController, view_options: ViewOptions) -> Dispatcher:
    # Контроллер и настройки отображения доступны хендлерам как аргументы
    dp = Dispatcher(controller=controller, view_options=view_options)

    # Логирование всех входящих событий + исключений с контекстом
    dp.message.middleware(LoggingMiddleware(log_success=True))
    dp.callback_query.middleware(LoggingMiddleware(log_success=True))

    # Глобальный обработчик ошибок aiogram (ловит необработанные исключения в хендлерах)
    @dp.errors()
    async def global_error_handler(event: ErrorEvent):
        exc = event.exception
        # update_id помогает искать конкретный апдейт в логах Telegram
        trace = f"update_id={getattr(event.update, 'update_id', None)}"
        logger.error(
            "UNHANDLED %s err=%s",
            trace,
            repr(exc),
            exc_info=(type(exc), exc, exc.__traceback__),
        )

        # Пытаемся мягко сообщить пользователю, не раскрывая деталей
        try:
            if event.update and event.update.message:
                await event.update.message.answer("⚠️ Something went wrong. Please try again.")
            elif event.update and event.update.callback_query:
                await event.update.callback_query.answer("⚠️ Error. Please try again.", show_alert=True)
        except (TelegramBadRequest, TelegramNetworkError) as e:
            # Главное, что залогировали
            logger.debug("Cannot notify user about error: %s", e)

    dp.message.middleware(BrowseSessionMiddleware(controller))
    dp.callback_query.middleware(BrowseSessionMiddleware(controller))

    # Include routers (fallback — последним, ловит необработанные обновления)
    dp.include_router(start.router)
    dp.include_router(catalog.router)
    dp.include_router(fallback.router)
    return dp


async def main():
    logger.info("Starting bot...")
    setup_asyncio_exception_logging()
    # Локально предотвращаем запуск двух копий
    acquire_single_instance_lock()

    bot = Bot(token=config.BOT_TOKEN)

    store = CatalogStore(
        config.CATALOG_URL,
        stale_days=config.CATALOG_STALE_DAYS,
        timeout=config.CATALOG_FETCH_TIMEOUT,
    )
    # Каталог грузится в фоне: бот отвечает сразу, поиск до загрузки — "not loaded yet"
    load_task = asyncio.create_task(store.load(), name="catalog-load")

    controller = CatalogController(store, max_sessions=config.BROWSE_SESSIONS_MAX)
    dp = build_dispatcher(controller, ViewOptions.from_config(config))

    redis_client = await connect_redis()
    message_rate_limit = await create_rate_limit_middleware(
        redis_client=redis_client,
        max_calls=config.RATE_LIMIT_MESSAGE_MAX,
        period=config.RATE_LIMIT_PERIOD
    )
    callback_rate_limit = await create_rate_limit_middleware(
        redis_client=redis_client,
        max_calls=config.RATE_LIMIT_CALLBACK_MAX,
        period=config.RATE_LIMIT_PERIOD
    )
    dp.message.middleware(message_rate_limit)
    dp.callback_query.middleware(callback_rate_limit)

    try:
        try:
            await bot.delete_webhook(drop_pending_updates=True)
            logger.info("Webhook deleted successfully")
        except (TelegramBadRequest, TelegramNetworkError) as webhook_error:
            # Продолжаем работу даже если webhook не был установлен
            logger.warning(f"Error deleting webhook (may not exist): {webhook_error}")

        logger.info("Bot started successfully")

        # Автоперезапуск polling при временных сетевых сбоях
        restart_delay = float(os.getenv("POLL_RESTART_SECONDS", "5"))
        while True:
            try:
                await dp.start_polling(
                    bot,
                    allowed_updates=["message", "callback_query"],
                    drop_pending_updates=True
                )
                break  # нормальная остановка polling
            except TelegramRetryAfter as e:
                # Telegram просит подождать (rate limit)
                wait_s = float(getattr(e, "retry_after", restart_delay))
                logger.warning("TelegramRetryAfter: wait %.1fs then continue", wait_s, exc_info=True)
                await asyncio.sleep(wait_s)
            except (TelegramNetworkError, TelegramServerError, asyncio.TimeoutError, OSError):
                logger.error("Polling crashed (network/server). Restart in %.1fs", restart_delay, exc_info=True)
                await asyncio.sleep(restart_delay)
    except Exception as e:
        logger.error(f"Error starting bot: {e}", exc_info=True)
        raise
    finally:
        if not load_task.done():
            load_task.cancel()
        await bot.session.close()
        if redis_client is not None:
            await redis_client.aclose()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
