import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from bookshop.bot.handlers import router
from bookshop.config import settings
from bookshop.services.shop import Shop


async def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN is empty. Set BOT_TOKEN in .env")
    if not settings.admin_id:
        raise RuntimeError("ADMIN_ID is empty. Set ADMIN_ID (or ADMIN_TG_ID) in .env")

    shop = Shop(settings).open(seed=True)
    try:
        bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
        dp = Dispatcher(shop=shop)
        dp.include_router(router)

        await dp.start_polling(bot)
    finally:
        shop.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
