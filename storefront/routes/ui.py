"""Server-rendered storefront pages."""
import json
import logging
import os
from typing import Any, Callable, List, Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import create_access_token, verify_password
from ..client.cart import clean_items, format_usd
from ..client.state import CartContext
from ..db import get_db
from ..deps import get_gateway, resolve_user
from ..enums import OrderStatus
from ..errors import ApiError
from ..payments import PaymentError, PaymentGateway
from ..utils import sanitize_input

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))
templates.env.filters["usd"] = format_usd

router = APIRouter(prefix="/ui", include_in_schema=False)

TOKEN_COOKIE = "token"
# (label, [min, max]) price bands offered by the home page filter
PRICE_BANDS = [
    ("$0 to 19", [0, 19.99]),
    ("$20 to 39", [20, 39.99]),
    ("$40 to 59", [40, 59.99]),
    ("$60 to 79", [60, 79.99]),
    ("$80 to 99", [80, 99.99]),
    ("$100 or more", [100, 9999]),
]


class CookieSessionStore:
    """Session store over one cookie; writes are applied to the outgoing response.

    The cookie is client-controlled, so `clean` vets the decoded value; None
    from it means the slot is treated as empty.
    """

    def __init__(self, request: Request, key: str, clean: Callable[[Any], Any] = lambda value: value):
        self.key = key
        self.clean = clean
        self._raw: Optional[str] = request.cookies.get(key)
        self._dirty = False

    def load(self) -> Optional[Any]:
        if not self._raw:
            return None
        try:
            return self.clean(json.loads(self._raw))
        except ValueError:
            return None

    def save(self, value: Any) -> None:
        self._raw = json.dumps(value)
        self._dirty = True

    def clear(self) -> None:
        self._raw = None
        self._dirty = True

    def apply(self, response) -> None:
        if not self._dirty:
            return
        if self._raw is None:
            response.delete_cookie(self.key)
        else:
            response.set_cookie(self.key, self._raw, httponly=True, samesite="lax")


def cart_for(request: Request) -> CartContext:
    return CartContext(CookieSessionStore(request, CartContext.key, clean=clean_items))


def current_user(request: Request, db: Session) -> Optional[models.User]:
    try:
        return resolve_user(db, request.cookies.get(TOKEN_COOKIE, ""))
    except ApiError:
        return None


def render(request: Request, name: str, db: Session, status_code: int = 200, **context):
    context.setdefault("title", "Ecommerce app - shop now")
    context["user"] = current_user(request, db)
    context["cart_count"] = len(cart_for(request).state)
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def spinner(request: Request, db: Session, status_code: int):
    return render(request, "spinner.html", db, status_code=status_code, title="Redirecting", seconds=3)


def products_view(products) -> List[schemas.ProductRead]:
    return [schemas.ProductRead.model_validate(p) for p in products]


@router.get("", response_class=HTMLResponse)
async def home(
    request: Request,
    page: int = 1,
    category: List[str] = Query(default=[]),
    price: Optional[int] = None,
    db: Session = Depends(get_db),
):
    radio = PRICE_BANDS[price][1] if price is not None and 0 <= price < len(PRICE_BANDS) else []
    if category or radio:
        products = crud.filter_products(db, category, radio)
    else:
        products = crud.list_products_page(db, page)
    return render(
        request, "index.html", db,
        title="ALL Products - Best offers",
        products=products_view(products),
        categories=crud.list_categories(db),
        checked=category,
        price=price,
        price_bands=PRICE_BANDS,
        page=page,
        total=crud.count_products(db),
    )


@router.get("/categories", response_class=HTMLResponse)
async def categories(request: Request, db: Session = Depends(get_db)):
    return render(request, "categories.html", db, title="All Categories", categories=crud.list_categories(db))


@router.get("/category/{slug}", response_class=HTMLResponse)
async def category_products(request: Request, slug: str, db: Session = Depends(get_db)):
    category = crud.get_category_by_slug(db, slug)
    if not category:
        return render(request, "pagenotfound.html", db, status_code=404, title="404 - Page Not Found")
    return render(
        request, "category.html", db,
        title=category.name,
        category=category,
        products=products_view(crud.products_in_category(db, category)),
    )


@router.get("/product/{slug}", response_class=HTMLResponse)
async def product_details(request: Request, slug: str, db: Session = Depends(get_db)):
    product = crud.get_product_by_slug(db, slug)
    if not product:
        return render(request, "pagenotfound.html", db, status_code=404, title="404 - Page Not Found")
    related = crud.related_products(db, product.id, product.category_id) if product.category_id else []
    return render(
        request, "product.html", db,
        title=product.name,
        product=schemas.ProductRead.model_validate(product),
        related=products_view(related),
    )


@router.get("/search", response_class=HTMLResponse)
async def search(request: Request, keyword: str = "", db: Session = Depends(get_db)):
    cleaned = sanitize_input(keyword)
    results = products_view(crud.search_products(db, cleaned)) if cleaned else []
    return render(request, "search.html", db, title="Search results", keyword=keyword, results=results)


# -------------------- Cart --------------------

def render_cart(request: Request, db: Session, gateway: PaymentGateway, cart: CartContext, status_code: int = 200, error: Optional[str] = None):
    """Cart page; signed-in shoppers with items also get a Drop-in client token."""
    client_token = None
    if cart.state and current_user(request, db):
        try:
            client_token = gateway.client_token()
        except PaymentError as e:
            logger.warning("payment form unavailable: %s", e)
            error = error or "Payment is unavailable right now"
    return render(
        request, "cart.html", db, status_code=status_code, title="Cart",
        items=cart.state, total=cart.total_display(), client_token=client_token, error=error,
    )


@router.get("/cart", response_class=HTMLResponse)
async def cart_page(request: Request, gateway: PaymentGateway = Depends(get_gateway), db: Session = Depends(get_db)):
    return render_cart(request, db, gateway, cart_for(request))


@router.post("/cart/add")
async def cart_add(request: Request, product_id: str = Form(...), db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    response = RedirectResponse(url="/ui/cart", status_code=303)
    if product:
        cart = cart_for(request)
        cart.add({"_id": product.id, "name": product.name, "slug": product.slug,
                  "description": product.description, "price": str(product.price)})
        cart.store.apply(response)
    return response


@router.post("/cart/remove")
async def cart_remove(request: Request, product_id: str = Form(...)):
    cart = cart_for(request)
    cart.remove(product_id)
    response = RedirectResponse(url="/ui/cart", status_code=303)
    cart.store.apply(response)
    return response


@router.post("/cart/checkout")
async def cart_checkout(
    request: Request,
    nonce: str = Form(default=""),
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    user = current_user(request, db)
    if not user:
        return RedirectResponse(url="/ui/login", status_code=303)
    cart = cart_for(request)
    error = None
    if not nonce:
        error = "Payment nonce is required"
    elif not cart.state:
        error = "Cart is empty"
    else:
        try:
            order, payment = crud.place_order(db, gateway, user, [item["_id"] for item in cart.state], nonce)
            if order is None:
                error = payment.get("message") or "Payment failed"
        except (ValueError, PaymentError, SQLAlchemyError) as e:
            logger.warning("checkout failed for %s: %s", user.id, e)
            error = "Something went wrong"
    if error:
        return render_cart(request, db, gateway, cart, status_code=400, error=error)
    cart.reset()
    response = RedirectResponse(url="/ui/dashboard/user/orders", status_code=303)
    cart.store.apply(response)
    return response


# -------------------- Static pages --------------------

@router.get("/about", response_class=HTMLResponse)
async def about(request: Request, db: Session = Depends(get_db)):
    return render(request, "about.html", db, title="About us - Ecommerce app")


@router.get("/contact", response_class=HTMLResponse)
async def contact(request: Request, db: Session = Depends(get_db)):
    return render(request, "contact.html", db, title="Contact Us")


@router.get("/policy", response_class=HTMLResponse)
async def policy(request: Request, db: Session = Depends(get_db)):
    return render(request, "policy.html", db, title="Privacy Policy")


# -------------------- Session --------------------

@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "login.html", db, title="Login - Ecommerce App")


@router.post("/login")
async def login_submit(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    db: Session = Depends(get_db),
):
    user = crud.get_user_by_email(db, email) if email else None
    if not user or not password or not verify_password(password, user.password):
        return render(request, "login.html", db, status_code=401, title="Login - Ecommerce App",
                      error="Invalid email or password")
    target = "/ui/dashboard/admin/orders" if user.is_admin else "/ui/dashboard/user/orders"
    response = RedirectResponse(url=target, status_code=303)
    response.set_cookie(TOKEN_COOKIE, create_access_token(user.id), httponly=True, samesite="lax")
    return response


@router.post("/logout")
async def logout():
    response = RedirectResponse(url="/ui/login", status_code=303)
    response.delete_cookie(TOKEN_COOKIE)
    return response


# -------------------- Dashboards --------------------

@router.get("/dashboard/user/orders", response_class=HTMLResponse)
async def user_orders(request: Request, db: Session = Depends(get_db)):
    user = current_user(request, db)
    if not user:
        return spinner(request, db, 401)
    orders = [schemas.OrderRead.model_validate(o) for o in crud.list_orders_for_buyer(db, user.id)]
    return render(request, "user_orders.html", db, title="Your Orders", orders=orders)


@router.get("/dashboard/admin/orders", response_class=HTMLResponse)
async def admin_orders(request: Request, db: Session = Depends(get_db)):
    user = current_user(request, db)
    if not user:
        return spinner(request, db, 401)
    if not user.is_admin:
        return spinner(request, db, 403)
    orders = [schemas.OrderRead.model_validate(o) for o in crud.list_all_orders(db)]
    return render(request, "admin_orders.html", db, title="All Orders Data",
                  orders=orders, statuses=OrderStatus.values())


@router.post("/dashboard/admin/orders/{order_id}/status")
async def admin_order_status(request: Request, order_id: str, status: str = Form(default=""), db: Session = Depends(get_db)):
    user = current_user(request, db)
    if not user or not user.is_admin:
        return spinner(request, db, 403)
    order = crud.get_order(db, order_id)
    if not order or status not in OrderStatus.values():
        orders = [schemas.OrderRead.model_validate(o) for o in crud.list_all_orders(db)]
        return render(request, "admin_orders.html", db, status_code=400, title="All Orders Data",
                      orders=orders, statuses=OrderStatus.values(), error="Something went wrong")
    crud.update_order_status(db, order, status)
    return RedirectResponse(url="/ui/dashboard/admin/orders", status_code=303)


@router.get("/{path:path}", response_class=HTMLResponse)
async def page_not_found(request: Request, path: str, db: Session = Depends(get_db)):
    return render(request, "pagenotfound.html", db, status_code=404, title="404 - Page Not Found")
