import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..db import get_db
from ..deps import get_gateway, require_admin, require_sign_in
from ..errors import envelope, server_error
from ..payments import PaymentError, PaymentGateway
from ..utils import is_valid_id, sanitize_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/product", tags=["product"])

MAX_PHOTO_BYTES = 1_000_000


def product_list(products) -> list[schemas.ProductRead]:
    return [schemas.ProductRead.model_validate(p) for p in products]


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").lower() in ("1", "true", "yes", "on")


async def read_product_form(
    name: Optional[str],
    description: Optional[str],
    price: Optional[str],
    category: Optional[str],
    quantity: Optional[str],
    shipping: Optional[str],
    photo: Optional[UploadFile],
    db: Session,
):
    """Validate the multipart product form.

    Returns (fields, None) on success or (None, error_response).
    """
    checks = [
        (name, "Name is Required"),
        (description, "Description is Required"),
        (price, "Price is Required"),
        (category, "Category is Required"),
        (quantity, "Quantity is Required"),
    ]
    for value, message in checks:
        if not value:
            return None, envelope(400, False, message)
    try:
        price_value = Decimal(price)
    except InvalidOperation:
        return None, envelope(400, False, "Price must be a number")
    if not price_value.is_finite():
        return None, envelope(400, False, "Price must be a number")
    if price_value < 0:
        return None, envelope(400, False, "Price must be non-negative")
    try:
        quantity_value = int(quantity)
    except ValueError:
        return None, envelope(400, False, "Quantity must be a whole number")
    if quantity_value < 0:
        return None, envelope(400, False, "Quantity must be non-negative")

    data, content_type = None, None
    if photo is not None and photo.filename:
        data = await photo.read()
        if len(data) > MAX_PHOTO_BYTES:
            return None, envelope(400, False, "photo is Required and should be less then 1mb")
        content_type = photo.content_type

    if not crud.get_category(db, category):
        return None, envelope(404, False, "Category not found")

    fields = dict(
        name=name,
        description=description,
        price=price_value,
        category_id=category,
        quantity=quantity_value,
        shipping=parse_bool(shipping),
        photo=data or None,
        photo_content_type=content_type,
    )
    return fields, None


@router.post("/create-product")
async def create_product(
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    quantity: Optional[str] = Form(default=None),
    shipping: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        fields, error = await read_product_form(name, description, price, category, quantity, shipping, photo, db)
        if error:
            return error
        product = crud.create_product(db, **fields)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error in creating product", e)
    logger.info("product %s created by %s", product.id, user.id)
    return envelope(201, True, "Product Created Successfully", products=schemas.ProductRead.model_validate(product))


@router.put("/update-product/{pid}")
async def update_product(
    pid: str,
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    quantity: Optional[str] = Form(default=None),
    shipping: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        product = crud.get_product(db, pid)
        if not product:
            return envelope(404, False, "Product not found")
        fields, error = await read_product_form(name, description, price, category, quantity, shipping, photo, db)
        if error:
            return error
        product = crud.update_product(db, product, **fields)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error in updating product", e)
    return envelope(200, True, "Product Updated Successfully", products=schemas.ProductRead.model_validate(product))


@router.delete("/delete-product/{pid}")
async def delete_product(pid: str, user: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        deleted = crud.delete_product(db, pid)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error while deleting product", e)
    if not deleted:
        return envelope(404, False, "Product not found")
    return envelope(200, True, "Product Deleted successfully")


@router.get("/get-product")
async def get_products(db: Session = Depends(get_db)):
    try:
        products = crud.list_products(db)
    except SQLAlchemyError as e:
        return server_error("Error in getting products", e)
    return envelope(200, True, "All Products", countTotal=len(products), products=product_list(products))


@router.get("/get-product/{slug}")
async def get_single_product(slug: str, db: Session = Depends(get_db)):
    try:
        product = crud.get_product_by_slug(db, slug)
    except SQLAlchemyError as e:
        return server_error("Error while getting single product", e)
    if not product:
        return envelope(404, False, "Product not found")
    return envelope(200, True, "Single Product Fetched", product=schemas.ProductRead.model_validate(product))


@router.get("/product-photo/{pid}")
async def product_photo(pid: str, db: Session = Depends(get_db)):
    if not is_valid_id(pid):
        return Response(status_code=400)
    try:
        product = crud.get_product(db, pid)
    except SQLAlchemyError as e:
        return server_error("Error while getting photo", e)
    if not product:
        return Response(status_code=404)
    if not product.photo_data:
        return Response(status_code=204)
    return Response(content=product.photo_data, media_type=product.photo_content_type or "application/octet-stream")


@router.get("/product-count")
async def product_count(db: Session = Depends(get_db)):
    try:
        total = crud.count_products(db)
    except SQLAlchemyError as e:
        return server_error("Error in product count", e)
    return envelope(200, True, "Product count", total=total)


@router.get("/product-list/{page}")
async def product_page(page: int, db: Session = Depends(get_db)):
    try:
        products = crud.list_products_page(db, page)
    except SQLAlchemyError as e:
        return server_error("Error in product page", e)
    return envelope(200, True, "Products page", products=product_list(products))


@router.post("/product-filters")
async def product_filters(payload: schemas.ProductFilters, db: Session = Depends(get_db)):
    try:
        products = crud.filter_products(db, payload.checked, payload.radio)
    except SQLAlchemyError as e:
        return server_error("Error while filtering products", e)
    return envelope(200, True, "Filtered Products", products=product_list(products))


@router.get("/search/{keyword}", response_model=list[schemas.ProductRead])
async def search_products(keyword: str, db: Session = Depends(get_db)):
    keyword = sanitize_input(keyword)
    if not keyword:
        return []
    try:
        return crud.search_products(db, keyword)
    except SQLAlchemyError as e:
        return server_error("Error in search product API", e)


@router.get("/related-product/{pid}/{cid}")
async def related_products(pid: str, cid: str, db: Session = Depends(get_db)):
    try:
        products = crud.related_products(db, pid, cid)
    except SQLAlchemyError as e:
        return server_error("Error while getting related products", e)
    return envelope(200, True, "Related Products", products=product_list(products))


@router.get("/product-category/{slug}")
async def products_by_category(slug: str, db: Session = Depends(get_db)):
    try:
        category = crud.get_category_by_slug(db, slug)
        if not category:
            return envelope(404, False, "Category not found")
        products = crud.products_in_category(db, category)
    except SQLAlchemyError as e:
        return server_error("Error While Getting products", e)
    return envelope(
        200, True, "Category Products",
        category=schemas.CategoryRead.model_validate(category),
        products=product_list(products),
    )


# -------------------- Checkout --------------------

@router.get("/braintree/token")
async def braintree_token(gateway: PaymentGateway = Depends(get_gateway)):
    try:
        token = gateway.client_token()
    except PaymentError as e:
        return server_error("Error generating payment token", e)
    return {"success": True, "clientToken": token}


@router.post("/braintree/payment")
async def braintree_payment(
    payload: schemas.PaymentRequest,
    user: models.User = Depends(require_sign_in),
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    if not payload.nonce:
        return envelope(400, False, "Payment nonce is required")
    if not payload.cart:
        return envelope(400, False, "Cart is empty")
    try:
        order, payment = crud.place_order(db, gateway, user, [item.id for item in payload.cart], payload.nonce)
    except ValueError as e:
        return envelope(400, False, str(e))
    except PaymentError as e:
        return server_error("Payment failed", e)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error while placing order", e)
    if order is None:
        return envelope(500, False, payment.get("message") or "Payment failed", payment=payment)
    logger.info("order %s placed by %s", order.id, user.id)
    return {"ok": True}
