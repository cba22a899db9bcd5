"""
Read-side revenue reports over the order ledger.

Every query goes to the database on each call; nothing is cached or
counted incrementally. Calendar boundaries (today, month, year) are taken
in the reporting time zone and converted to UTC, which is how order dates
are stored. All committed orders count as revenue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, List, Tuple
from zoneinfo import ZoneInfo

from bookshop.db.sqlite import Database, to_db_date


@dataclass(frozen=True)
class DailyRevenue:
    date: date
    revenue: float


@dataclass(frozen=True)
class MonthlyRevenue:
    month: int
    revenue: float
    order_count: int


@dataclass(frozen=True)
class TopProduct:
    product_id: int
    title: str
    total_sold: int
    revenue: float


@dataclass(frozen=True)
class RevenueSummary:
    total_revenue: float
    today_revenue: float
    month_revenue: float
    year_revenue: float
    order_count: int
    daily: List[DailyRevenue] = field(default_factory=list)
    monthly: List[MonthlyRevenue] = field(default_factory=list)
    top_products: List[TopProduct] = field(default_factory=list)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RevenueAggregator:
    def __init__(
        self,
        db: Database,
        tz: str = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.db = db
        self.tz = ZoneInfo(tz)
        self.clock = clock

    # ---------------- boundaries ----------------

    def today(self) -> date:
        return self.clock().astimezone(self.tz).date()

    def _day_start(self, d: date) -> datetime:
        return datetime.combine(d, time.min, tzinfo=self.tz)

    def _month_bounds(self, year: int, month: int) -> Tuple[datetime, datetime]:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be 1..12, got {month}")
        start = self._day_start(date(year, month, 1))
        if month == 12:
            end = self._day_start(date(year + 1, 1, 1))
        else:
            end = self._day_start(date(year, month + 1, 1))
        return start, end

    def _localize(self, dt: datetime) -> datetime:
        # наивное время считаем временем отчётной зоны
        return dt.replace(tzinfo=self.tz) if dt.tzinfo is None else dt

    # ---------------- totals ----------------

    def total_revenue(self) -> float:
        return float(self.db.scalar("SELECT COALESCE(SUM(total_amount), 0) FROM orders"))

    def order_count(self) -> int:
        return int(self.db.scalar("SELECT COUNT(*) FROM orders"))

    def _range_stats(self, start: datetime, end: datetime) -> Tuple[float, int]:
        row = self.db.query_one(
            """
            SELECT COALESCE(SUM(total_amount), 0) AS revenue, COUNT(*) AS order_count
            FROM orders
            WHERE order_date >= ? AND order_date < ?
            """,
            (to_db_date(self._localize(start)), to_db_date(self._localize(end))),
        )
        return float(row["revenue"]), int(row["order_count"])

    def revenue_in_range(self, start: datetime, end: datetime) -> float:
        """Revenue of orders placed in [start, end)."""
        return self._range_stats(start, end)[0]

    def today_revenue(self) -> float:
        today = self.today()
        return self.revenue_in_range(self._day_start(today), self._day_start(today + timedelta(days=1)))

    def month_revenue(self, year: int, month: int) -> float:
        return self.revenue_in_range(*self._month_bounds(year, month))

    def year_revenue(self, year: int) -> float:
        return self.revenue_in_range(
            self._day_start(date(year, 1, 1)),
            self._day_start(date(year + 1, 1, 1)),
        )

    # ---------------- series ----------------

    def revenue_by_day(self, n_days: int) -> List[DailyRevenue]:
        """Last n_days calendar days ending today, oldest first, zero-filled."""
        if n_days < 0:
            raise ValueError("n_days must be >= 0")
        today = self.today()
        result = []
        for offset in range(n_days - 1, -1, -1):
            d = today - timedelta(days=offset)
            revenue = self.revenue_in_range(self._day_start(d), self._day_start(d + timedelta(days=1)))
            result.append(DailyRevenue(date=d, revenue=revenue))
        return result

    def revenue_by_month(self, year: int) -> List[MonthlyRevenue]:
        result = []
        for month in range(1, 13):
            revenue, count = self._range_stats(*self._month_bounds(year, month))
            result.append(MonthlyRevenue(month=month, revenue=revenue, order_count=count))
        return result

    def top_selling_products(self, limit: int = 5) -> List[TopProduct]:
        if limit <= 0:
            return []
        rows = self.db.query(
            """
            SELECT oi.product_id,
                   (SELECT last.product_title FROM order_items last
                    WHERE last.product_id = oi.product_id
                    ORDER BY last.id DESC LIMIT 1) AS title,
                   SUM(oi.quantity) AS total_sold,
                   SUM(oi.price * oi.quantity) AS revenue
            FROM order_items oi
            GROUP BY oi.product_id
            ORDER BY total_sold DESC, revenue DESC, product_id ASC
            LIMIT ?
            """,
            (limit,),
        )
        return [
            TopProduct(
                product_id=int(r["product_id"]),
                title=r["title"],
                total_sold=int(r["total_sold"]),
                revenue=float(r["revenue"]),
            )
            for r in rows
        ]

    def summary(self, days: int = 7, top: int = 5) -> RevenueSummary:
        """Everything the statistics view shows, read in one transaction."""
        today = self.today()
        with self.db.transaction():
            return RevenueSummary(
                total_revenue=self.total_revenue(),
                today_revenue=self.today_revenue(),
                month_revenue=self.month_revenue(today.year, today.month),
                year_revenue=self.year_revenue(today.year),
                order_count=self.order_count(),
                daily=self.revenue_by_day(days),
                monthly=self.revenue_by_month(today.year),
                top_products=self.top_selling_products(top),
            )
