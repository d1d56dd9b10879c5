from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from tripcost.api.client import TripApiClient, set_global_client
from tripcost.config import get_settings
from tripcost.handlers import basic_router, costs_router
from tripcost.logging import configure_logging, get_logger


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN is not set")

    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    client = TripApiClient(settings.api_base_url, settings.api_token, timeout=settings.api_timeout)

    dp.include_router(basic_router)
    dp.include_router(costs_router)

    set_global_client(client)

    log = get_logger(__name__)
    log.info("bot.start", api_base_url=settings.api_base_url)
    try:
        await dp.start_polling(bot)
    finally:
        await client.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
