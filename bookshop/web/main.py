from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import FileResponse, JSONResponse

from bookshop.constants import ROLE_ADMIN
from bookshop.errors import AuthError, EmptyCartError, NotFoundError, PersistenceError
from bookshop.services.checkout import ShippingInfo, place_order
from bookshop.services.receipt_pdf import generate_receipt_pdf
from bookshop.services.shop import Shop

logger = logging.getLogger(__name__)


def get_shop(request: Request) -> Shop:
    return request.app.state.shop


def require_admin(shop: Shop = Depends(get_shop)) -> Dict[str, Any]:
    user = shop.current_user
    if not user:
        raise AuthError("Not signed in")
    if user["role"] != ROLE_ADMIN:
        raise AuthError("Admin access required")
    return user


def _product_form(
    title: str = Form(...),
    author: str = Form(...),
    price: float = Form(...),
    category: str = Form(...),
    stock: int = Form(0),
    isbn: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[str] = Form(None),
    rating: float = Form(0),
    pages: Optional[int] = Form(None),
    language: Optional[str] = Form(None),
    publisher: Optional[str] = Form(None),
    publication_date: Optional[str] = Form(None),
) -> Dict[str, Any]:
    return {
        "title": title,
        "author": author,
        "price": price,
        "category": category,
        "stock": stock,
        "isbn": isbn,
        "description": description,
        "image": image,
        "rating": rating,
        "pages": pages,
        "language": language,
        "publisher": publisher,
        "publication_date": publication_date,
    }


def create_app(shop_factory: Optional[Callable[[], Shop]] = None, seed: bool = True) -> FastAPI:
    app = FastAPI(title="Bookshop")
    factory = shop_factory or Shop

    @app.on_event("startup")
    def _startup() -> None:
        app.state.shop = factory().open(seed=seed)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.shop.close()

    # ---------------- errors ----------------

    @app.exception_handler(ValueError)
    async def _bad_request(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(EmptyCartError)
    async def _empty_cart(request: Request, exc: EmptyCartError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(AuthError)
    async def _auth(request: Request, exc: AuthError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def _persistence(request: Request, exc: PersistenceError):
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "storage error"})

    @app.get("/")
    def index(shop: Shop = Depends(get_shop)):
        return {
            "name": "Bookshop",
            "products": shop.catalog.count_products(),
            "cart_units": shop.cart.unit_count(),
        }

    # ---------------- products ----------------

    @app.get("/products")
    def products(
        q: str = "",
        category: Optional[str] = None,
        sort: Optional[str] = None,
        shop: Shop = Depends(get_shop),
    ):
        return shop.catalog.search_products(q, category, sort)

    @app.get("/products/categories")
    def categories(shop: Shop = Depends(get_shop)):
        return shop.catalog.list_categories()

    @app.get("/products/{product_id}")
    def product(product_id: int, shop: Shop = Depends(get_shop)):
        row = shop.catalog.get_product(product_id)
        if not row:
            raise NotFoundError("product", product_id)
        return row

    @app.post("/products", status_code=201, dependencies=[Depends(require_admin)])
    def products_add(data: Dict[str, Any] = Depends(_product_form), shop: Shop = Depends(get_shop)):
        return shop.catalog.add_product(data)

    @app.put("/products/{product_id}", dependencies=[Depends(require_admin)])
    def products_update(
        product_id: int,
        data: Dict[str, Any] = Depends(_product_form),
        shop: Shop = Depends(get_shop),
    ):
        return shop.catalog.update_product(product_id, data)

    @app.delete("/products/{product_id}", dependencies=[Depends(require_admin)])
    def products_delete(product_id: int, shop: Shop = Depends(get_shop)):
        shop.catalog.delete_product(product_id)
        return {"ok": True}

    # ---------------- cart ----------------

    @app.get("/cart")
    def cart(shop: Shop = Depends(get_shop)):
        return shop.cart.to_dict()

    @app.post("/cart/add")
    def cart_add(product_id: int = Form(...), quantity: int = Form(1), shop: Shop = Depends(get_shop)):
        row = shop.catalog.get_product(product_id)
        if not row:
            raise NotFoundError("product", product_id)
        if not shop.cart.add_line(row, quantity):
            raise ValueError("quantity must be > 0")
        return shop.cart.to_dict()

    @app.post("/cart/quantity")
    def cart_quantity(product_id: int = Form(...), quantity: int = Form(...), shop: Shop = Depends(get_shop)):
        shop.cart.set_quantity(product_id, quantity)
        return shop.cart.to_dict()

    @app.post("/cart/remove")
    def cart_remove(product_id: int = Form(...), shop: Shop = Depends(get_shop)):
        shop.cart.remove_line(product_id)
        return shop.cart.to_dict()

    @app.post("/cart/clear")
    def cart_clear(shop: Shop = Depends(get_shop)):
        shop.cart.clear()
        return shop.cart.to_dict()

    # ---------------- auth ----------------

    @app.post("/auth/register", status_code=201)
    def register(
        full_name: str = Form(...),
        email: str = Form(...),
        password: str = Form(...),
        shop: Shop = Depends(get_shop),
    ):
        return shop.users.register(full_name, email, password)

    @app.post("/auth/login")
    def login(
        email: str = Form(...),
        password: str = Form(...),
        remember: bool = Form(False),
        shop: Shop = Depends(get_shop),
    ):
        return shop.sign_in(email, password, remember)

    @app.post("/auth/logout")
    def logout(shop: Shop = Depends(get_shop)):
        shop.sign_out()
        return {"ok": True}

    @app.get("/auth/me")
    def me(shop: Shop = Depends(get_shop)):
        user = shop.current_user
        if not user:
            raise AuthError("Not signed in")
        return user

    # ---------------- checkout / orders ----------------

    @app.post("/checkout", status_code=201)
    def checkout(
        user_id: int = Form(...),
        full_name: str = Form(...),
        email: str = Form(...),
        phone: str = Form(...),
        address: str = Form(...),
        city: str = Form(...),
        postal_code: str = Form(...),
        country: str = Form(...),
        shop: Shop = Depends(get_shop),
    ):
        if not shop.users.get_user(user_id):
            raise NotFoundError("user", user_id)
        shipping = ShippingInfo(full_name, email, phone, address, city, postal_code, country)
        return place_order(shop.cart, shop.ledger, shipping, user_id)

    @app.get("/orders", dependencies=[Depends(require_admin)])
    def orders(shop: Shop = Depends(get_shop)):
        return shop.ledger.list_orders()

    @app.get("/orders/{order_id}")
    def order(order_id: int, shop: Shop = Depends(get_shop)):
        row = shop.ledger.get_order(order_id)
        if not row:
            raise NotFoundError("order", order_id)
        return row

    @app.delete("/orders/{order_id}", dependencies=[Depends(require_admin)])
    def order_delete(order_id: int, shop: Shop = Depends(get_shop)):
        shop.ledger.delete_order(order_id)
        return {"ok": True}

    @app.get("/orders/{order_id}/receipt", response_class=FileResponse)
    def order_receipt(order_id: int, shop: Shop = Depends(get_shop)):
        row = shop.ledger.get_order(order_id)
        if not row:
            raise NotFoundError("order", order_id)
        path = generate_receipt_pdf(
            row, shop.settings.export_dir, shop.settings.currency, shop.settings.tax_rate
        )
        return FileResponse(path, media_type="application/pdf", filename=Path(path).name)

    # ---------------- revenue ----------------

    @app.get("/revenue/summary", dependencies=[Depends(require_admin)])
    def revenue_summary(days: int = 7, top: int = 5, shop: Shop = Depends(get_shop)):
        return shop.revenue.summary(days=days, top=top)

    @app.get("/revenue/range", dependencies=[Depends(require_admin)])
    def revenue_range(start: datetime, end: datetime, shop: Shop = Depends(get_shop)):
        return {"start": start, "end": end, "revenue": shop.revenue.revenue_in_range(start, end)}

    @app.get("/revenue/daily", dependencies=[Depends(require_admin)])
    def revenue_daily(days: int = 7, shop: Shop = Depends(get_shop)):
        return shop.revenue.revenue_by_day(days)

    @app.get("/revenue/monthly", dependencies=[Depends(require_admin)])
    def revenue_monthly(year: Optional[int] = None, shop: Shop = Depends(get_shop)):
        return shop.revenue.revenue_by_month(year or shop.revenue.today().year)

    @app.get("/revenue/top", dependencies=[Depends(require_admin)])
    def revenue_top(limit: int = 5, shop: Shop = Depends(get_shop)):
        return shop.revenue.top_selling_products(limit)

    return app


app = create_app()
