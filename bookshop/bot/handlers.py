import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import FSInputFile, Message, ReplyKeyboardRemove

from bookshop.bot.keyboards import categories_kb, main_kb
from bookshop.bot.states import ProductAdd
from bookshop.bot.texts import (
    HELP_TEXT,
    REVENUE_PERIODS,
    daily_text,
    monthly_text,
    order_text,
    orders_text,
    products_text,
    revenue_text,
    top_text,
)
from bookshop.errors import NotFoundError, ShopError
from bookshop.services.backup import make_backup_zip
from bookshop.services.receipt_pdf import generate_receipt_pdf
from bookshop.services.shop import Shop

logger = logging.getLogger(__name__)

router = Router()

DEFAULT_DAYS = 7
DEFAULT_TOP = 5
MAX_DAYS = 90


def _is_admin(message: Message, shop: Shop) -> bool:
    if message.from_user is None:
        return False
    return int(message.from_user.id) == int(shop.settings.admin_id)


def _parse_price(text: str) -> float:
    return float(text.strip().replace(",", "."))


def _arg(message: Message) -> str:
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


async def _cancelled(message: Message, state: FSMContext) -> bool:
    if (message.text or "").strip() == "/cancel":
        await state.clear()
        await message.answer("❎ Отменено.", reply_markup=ReplyKeyboardRemove())
        return True
    return False


@router.message(Command("start"))
async def cmd_start(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    await message.answer("✅ Bookshop admin запущен", reply_markup=main_kb())


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop):
        return
    await state.clear()
    await message.answer("❎ Отменено. Можно вводить команды заново.", reply_markup=ReplyKeyboardRemove())


@router.message(Command("help"))
async def cmd_help(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    await message.answer(HELP_TEXT)


@router.message(Command("ping"))
async def cmd_ping(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    await message.answer("pong ✅")


@router.message(Command("backup"))
async def cmd_backup(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    try:
        file_path = make_backup_zip(
            shop.settings.db_path, shop.settings.export_dir, shop.settings.backup_dir
        )
        await message.answer_document(FSInputFile(file_path))
    except OSError as e:
        logger.exception("Backup failed")
        await message.answer(f"❌ Ошибка бэкапа: {e}")


# ---------------- revenue ----------------

@router.message(Command("revenue"))
async def cmd_revenue(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    period = _arg(message).lower() or "all"
    if period not in REVENUE_PERIODS:
        await message.answer("Формат: /revenue [all|today|month|year]")
        return
    try:
        summary = shop.revenue.summary(days=0, top=0)
    except ShopError as e:
        await message.answer(f"❌ Ошибка статистики: {e}")
        return
    await message.answer(revenue_text(summary, period))


@router.message(Command("daily"))
async def cmd_daily(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    raw = _arg(message)
    try:
        days = int(raw) if raw else DEFAULT_DAYS
        if not 1 <= days <= MAX_DAYS:
            raise ValueError(days)
    except ValueError:
        await message.answer(f"N должно быть числом от 1 до {MAX_DAYS}")
        return
    try:
        series = shop.revenue.revenue_by_day(days)
    except ShopError as e:
        await message.answer(f"❌ Ошибка статистики: {e}")
        return
    await message.answer(daily_text(series))


@router.message(Command("monthly"))
async def cmd_monthly(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    raw = _arg(message)
    try:
        year = int(raw) if raw else shop.revenue.today().year
    except ValueError:
        await message.answer("Формат: /monthly [YEAR], пример: /monthly 2025")
        return
    try:
        series = shop.revenue.revenue_by_month(year)
    except ShopError as e:
        await message.answer(f"❌ Ошибка статистики: {e}")
        return
    await message.answer(monthly_text(year, series))


@router.message(Command("top"))
async def cmd_top(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    raw = _arg(message)
    try:
        limit = int(raw) if raw else DEFAULT_TOP
    except ValueError:
        await message.answer("Формат: /top [N]")
        return
    try:
        products = shop.revenue.top_selling_products(limit)
    except ShopError as e:
        await message.answer(f"❌ Ошибка статистики: {e}")
        return
    await message.answer(top_text(products))


# ---------------- orders ----------------

@router.message(Command("orders"))
async def cmd_orders(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    await message.answer(orders_text(shop.ledger.list_orders()))


@router.message(Command("order"))
async def cmd_order(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    raw = _arg(message)
    if not raw.isdigit():
        await message.answer("Формат: /order ID")
        return

    order = shop.ledger.get_order(int(raw))
    if not order:
        await message.answer(f"❌ Заказ #{raw} не найден")
        return
    await message.answer(order_text(order))

    try:
        pdf_path = generate_receipt_pdf(
            order, shop.settings.export_dir, shop.settings.currency, shop.settings.tax_rate
        )
        await message.answer_document(FSInputFile(pdf_path))
    except OSError as e:
        logger.exception("Receipt PDF failed for order #%s", raw)
        await message.answer(f"⚠️ PDF не сгенерировался: {e}")


@router.message(Command("order_delete"))
async def cmd_order_delete(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    raw = _arg(message)
    if not raw.isdigit():
        await message.answer("Формат: /order_delete ID")
        return
    try:
        shop.ledger.delete_order(int(raw))
    except NotFoundError:
        await message.answer(f"❌ Заказ #{raw} не найден")
        return
    except ShopError as e:
        await message.answer(f"❌ Ошибка удаления: {e}")
        return
    await message.answer(f"✅ Заказ #{raw} удалён")


# ---------------- products ----------------

@router.message(Command("products"))
async def cmd_products(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    await message.answer(products_text(shop.catalog.list_products()))


@router.message(Command("seed"))
async def cmd_seed(message: Message, shop: Shop):
    if not _is_admin(message, shop):
        return
    inserted = shop.seed_if_empty()
    if inserted:
        await message.answer(f"✅ Добавлено книг: {inserted}")
    else:
        await message.answer("Каталог не пустой, ничего не добавлено.")


@router.message(Command("product_add"))
async def cmd_product_add(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop):
        return
    await state.clear()
    await state.set_state(ProductAdd.waiting_title)
    await message.answer(
        "Ок, добавляем книгу.\n\n1/5) Введите НАЗВАНИЕ\nОтмена: /cancel",
        reply_markup=ReplyKeyboardRemove(),
    )


@router.message(ProductAdd.waiting_title)
async def product_add_title(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop) or await _cancelled(message, state):
        return
    title = (message.text or "").strip()
    if not title or title.startswith("/"):
        await message.answer("Введите название текстом. Отмена: /cancel")
        return
    await state.update_data(title=title)
    await state.set_state(ProductAdd.waiting_author)
    await message.answer("2/5) Введите АВТОРА\nОтмена: /cancel")


@router.message(ProductAdd.waiting_author)
async def product_add_author(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop) or await _cancelled(message, state):
        return
    author = (message.text or "").strip()
    if not author or author.startswith("/"):
        await message.answer("Введите автора текстом. Отмена: /cancel")
        return
    await state.update_data(author=author)
    await state.set_state(ProductAdd.waiting_category)
    await message.answer(
        "3/5) Выберите или введите КАТЕГОРИЮ\nОтмена: /cancel",
        reply_markup=categories_kb(shop.catalog.list_categories()),
    )


@router.message(ProductAdd.waiting_category)
async def product_add_category(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop) or await _cancelled(message, state):
        return
    category = (message.text or "").strip()
    if not category or category.startswith("/"):
        await message.answer("Введите категорию текстом. Отмена: /cancel")
        return
    await state.update_data(category=category)
    await state.set_state(ProductAdd.waiting_price)
    await message.answer(
        f"4/5) Введите ЦЕНУ в {shop.settings.currency}.\nПример: 12.50\nОтмена: /cancel",
        reply_markup=ReplyKeyboardRemove(),
    )


@router.message(ProductAdd.waiting_price)
async def product_add_price(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop) or await _cancelled(message, state):
        return
    try:
        price = _parse_price(message.text or "")
        if price <= 0:
            raise ValueError("price <= 0")
    except ValueError:
        await message.answer("Цена должна быть числом, например 12.50\nОтмена: /cancel")
        return
    await state.update_data(price=price)
    await state.set_state(ProductAdd.waiting_stock)
    await message.answer("5/5) Введите ОСТАТОК (шт), или '-' чтобы поставить 0.\nОтмена: /cancel")


@router.message(ProductAdd.waiting_stock)
async def product_add_stock(message: Message, state: FSMContext, shop: Shop):
    if not _is_admin(message, shop) or await _cancelled(message, state):
        return
    raw = (message.text or "").strip()
    try:
        stock = 0 if raw == "-" else int(raw)
        if stock < 0:
            raise ValueError("stock < 0")
    except ValueError:
        await message.answer("Остаток должен быть целым числом >= 0\nОтмена: /cancel")
        return

    data = await state.get_data()
    try:
        product = shop.catalog.add_product({**data, "stock": stock})
        await message.answer(f"✅ Книга добавлена: #{product['id']} {product['title']}")
    except (ValueError, ShopError) as e:
        await message.answer(f"❌ Ошибка добавления книги: {e}")
    finally:
        await state.clear()
