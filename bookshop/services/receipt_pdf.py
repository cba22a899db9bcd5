from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from bookshop.config import settings
from bookshop.services.pricing import calc_tax


def generate_receipt_pdf(
    order: Mapping[str, Any],
    export_dir: Optional[str] = None,
    currency: Optional[str] = None,
    tax_rate: Optional[float] = None,
) -> str:
    """order is OrderLedger.get_order() output: order row plus its "items"."""
    export_dir = export_dir or settings.export_dir
    currency = currency or settings.currency
    os.makedirs(export_dir, exist_ok=True)

    items = order.get("items") or []
    subtotal = sum(float(it["price"]) * int(it["quantity"]) for it in items)

    path = os.path.join(export_dir, f"receipt_{int(order['id']):06d}.pdf")

    c = canvas.Canvas(path, pagesize=A4)
    w, h = A4

    y = h - 50
    c.setFont("Helvetica-Bold", 14)
    c.drawString(40, y, f"ORDER #{int(order['id']):06d}")
    y -= 20

    c.setFont("Helvetica", 11)
    c.drawString(40, y, f"Customer: {order['customer_name']} <{order['customer_email']}>")
    y -= 16
    c.drawString(40, y, f"Ship to: {order['customer_address'][:80]}")
    y -= 16
    c.drawString(40, y, f"Date (UTC): {order['order_date']}")
    y -= 16
    c.drawString(40, y, f"Status: {order['status']}")
    y -= 24

    # header
    c.setFont("Helvetica-Bold", 10)
    c.drawString(40, y, "Book")
    c.drawString(310, y, "Qty")
    c.drawString(360, y, "Price")
    c.drawString(440, y, "Total")
    y -= 10
    c.line(40, y, 550, y)
    y -= 16

    c.setFont("Helvetica", 10)
    for it in items:
        qty = int(it["quantity"])
        price = float(it["price"])
        c.drawString(40, y, str(it["product_title"])[:45])
        c.drawRightString(340, y, str(qty))
        c.drawRightString(420, y, f"{price:.2f}")
        c.drawRightString(550, y, f"{price * qty:.2f}")
        y -= 14
        if y < 80:
            c.showPage()
            y = h - 50
            c.setFont("Helvetica", 10)

    y -= 10
    c.line(40, y, 550, y)
    y -= 18
    c.setFont("Helvetica", 11)
    c.drawRightString(550, y, f"Subtotal: {subtotal:.2f} {currency}")
    y -= 16
    c.drawRightString(550, y, f"Tax: {calc_tax(subtotal, tax_rate):.2f} {currency}")
    y -= 18
    c.setFont("Helvetica-Bold", 12)
    c.drawRightString(550, y, f"TOTAL: {float(order['total_amount']):.2f} {currency}")

    c.save()
    return path
