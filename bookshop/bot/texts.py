from __future__ import annotations

from html import escape
from typing import Any, Dict, List, Sequence

from bookshop.services.revenue import DailyRevenue, MonthlyRevenue, RevenueSummary, TopProduct
from bookshop.utils.formatters import money, month_name, short_date

REVENUE_PERIODS = {
    "all": "Выручка за всё время",
    "today": "Выручка за сегодня",
    "month": "Выручка за месяц",
    "year": "Выручка за год",
}

HELP_TEXT = (
    "<b>Bookshop admin — команды</b>\n\n"
    "<b>Основное</b>\n"
    "/start — запуск\n"
    "/cancel — отмена ввода\n"
    "/help — помощь\n"
    "/ping — проверка\n"
    "/backup — бэкап базы + чеков\n\n"
    "<b>Выручка</b>\n"
    "/revenue [all|today|month|year] — выручка за период\n"
    "/daily [N] — по дням (по умолчанию 7)\n"
    "/monthly [YEAR] — по месяцам\n"
    "/top [N] — лидеры продаж\n\n"
    "<b>Заказы</b>\n"
    "/orders — последние заказы\n"
    "/order ID — заказ + PDF чек\n"
    "/order_delete ID — удалить заказ\n\n"
    "<b>Книги</b>\n"
    "/products — список\n"
    "/product_add — мастер добавления\n"
    "/seed — заполнить пустой каталог примерами\n"
)


def revenue_text(summary: RevenueSummary, period: str = "all") -> str:
    values = {
        "all": summary.total_revenue,
        "today": summary.today_revenue,
        "month": summary.month_revenue,
        "year": summary.year_revenue,
    }
    lines = [
        f"<b>{REVENUE_PERIODS[period]}</b>: {money(values[period])}",
        f"Заказов: {summary.order_count}",
        "",
        f"Сегодня: {money(summary.today_revenue)}",
        f"Месяц: {money(summary.month_revenue)}",
        f"Год: {money(summary.year_revenue)}",
    ]
    return "\n".join(lines)


def daily_text(days: Sequence[DailyRevenue]) -> str:
    lines = [f"<b>Выручка за последние {len(days)} дн.</b>"]
    for d in days:
        lines.append(f"  • {short_date(d.date)}: {money(d.revenue)}")
    return "\n".join(lines)


def monthly_text(year: int, months: Sequence[MonthlyRevenue]) -> str:
    lines = [f"<b>Выручка по месяцам, {year}</b>"]
    for m in months:
        lines.append(f"  • {month_name(m.month)}: {money(m.revenue)} ({m.order_count} заказ.)")
    return "\n".join(lines)


def top_text(products: Sequence[TopProduct]) -> str:
    if not products:
        return "Продаж пока нет."
    lines = ["<b>Лидеры продаж</b>"]
    for i, p in enumerate(products, start=1):
        lines.append(f"{i}. {escape(p.title)} — {p.total_sold} шт., {money(p.revenue)}")
    return "\n".join(lines)


def orders_text(orders: List[Dict[str, Any]], limit: int = 20) -> str:
    if not orders:
        return "Заказов пока нет."
    lines = ["<b>Заказы:</b>"]
    for o in orders[:limit]:
        lines.append(
            f"• #{int(o['id']):06d} {o['order_date']} | {escape(o['customer_name'])} | "
            f"{money(float(o['total_amount']))} | {o['status']}"
        )
    if len(orders) > limit:
        lines.append(f"… и ещё {len(orders) - limit}")
    return "\n".join(lines)


def order_text(order: Dict[str, Any]) -> str:
    lines = [
        f"<b>Заказ #{int(order['id']):06d}</b> ({order['status']})",
        f"Клиент: {escape(order['customer_name'])} &lt;{escape(order['customer_email'])}&gt;",
        f"Адрес: {escape(order['customer_address'])}",
        f"Дата (UTC): {order['order_date']}",
        "",
    ]
    for it in order["items"]:
        lines.append(
            f"  • {escape(it['product_title'])} × {it['quantity']} @ {money(float(it['price']))}"
        )
    lines.append("")
    lines.append(f"Итого: {money(float(order['total_amount']))}")
    return "\n".join(lines)


def products_text(products: List[Dict[str, Any]], limit: int = 30) -> str:
    if not products:
        return "Книг пока нет. Добавь: /product_add или /seed"
    lines = ["<b>Книги:</b>"]
    for p in products[:limit]:
        lines.append(
            f"• #{p['id']} {escape(p['title'])} — {escape(p['author'])} "
            f"({escape(p['category'])}) | {money(float(p['price']))} | остаток {p['stock']}"
        )
    if len(products) > limit:
        lines.append(f"… и ещё {len(products) - limit}")
    return "\n".join(lines)
