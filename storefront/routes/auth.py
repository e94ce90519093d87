import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import create_access_token, verify_password
from ..db import get_db
from ..deps import json_object, require_admin, require_sign_in
from ..enums import OrderStatus
from ..errors import envelope, server_error
from ..utils import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


def user_payload(user: models.User) -> schemas.UserRead:
    return schemas.UserRead.model_validate(user)


@router.post("/register")
async def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    checks = [
        (payload.name, "Name is Required"),
        (payload.email, "Email is Required"),
    ]
    for value, message in checks:
        if not value:
            return envelope(400, False, message)
    if not is_valid_email(payload.email):
        return envelope(400, False, "Invalid email format")
    checks = [
        (payload.password, "Password is Required"),
        (payload.phone, "Phone no is Required"),
        (payload.address, "Address is Required"),
        (payload.answer, "Answer is Required"),
    ]
    for value, message in checks:
        if not value:
            return envelope(400, False, message)

    try:
        if crud.get_user_by_email(db, payload.email):
            return envelope(200, False, "Already Register, please login")
        user = crud.create_user(db, payload)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error in Registeration", e)
    logger.info("registered user %s", user.id)
    return envelope(201, True, "User Register Successfully", user=user_payload(user))


@router.post("/login")
async def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        return envelope(404, False, "Invalid email or password")
    try:
        user = crud.get_user_by_email(db, payload.email)
    except SQLAlchemyError as e:
        return server_error("Error in login", e)
    if not user:
        return envelope(404, False, "Email is not registerd")
    if not verify_password(payload.password, user.password):
        return envelope(200, False, "Invalid Password")
    token = create_access_token(user.id)
    return envelope(200, True, "login successfully", user=user_payload(user), token=token)


@router.post("/forgot-password")
async def forgot_password(payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    if not payload.email:
        return envelope(400, False, "Email is required")
    if not is_valid_email(payload.email):
        return envelope(400, False, "Invalid email format")
    if not payload.answer:
        return envelope(400, False, "answer is required")
    if not payload.new_password:
        return envelope(400, False, "New Password is required")
    try:
        user = crud.find_user_by_answer(db, payload.email, payload.answer)
        if not user:
            return envelope(404, False, "Wrong Email Or Answer")
        crud.reset_password(db, user, payload.new_password)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Something went wrong", e)
    return envelope(200, True, "Password Reset Successfully")


@router.get("/user-auth")
async def user_auth(user: models.User = Depends(require_sign_in)):
    return {"ok": True}


@router.get("/admin-auth")
async def admin_auth(user: models.User = Depends(require_admin)):
    return {"ok": True}


@router.put("/profile")
async def update_profile(
    payload: schemas.ProfileUpdate,
    user: models.User = Depends(require_sign_in),
    db: Session = Depends(get_db),
):
    if payload.password and len(payload.password) < MIN_PASSWORD_LENGTH:
        return envelope(400, False, "Password is required and 6 character long")
    try:
        current = crud.get_user(db, user.id)
        if not current:
            return envelope(404, False, "User not found in database")
        updated = crud.update_profile(db, current, payload)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("profile update failed for %s", user.id)
        return envelope(400, False, "Error While Update profile", error=str(e))
    return envelope(200, True, "Profile Updated Successfully", updatedUser=user_payload(updated))


@router.get("/orders", response_model=List[schemas.OrderRead])
async def my_orders(user: models.User = Depends(require_sign_in), db: Session = Depends(get_db)):
    try:
        return crud.list_orders_for_buyer(db, user.id)
    except SQLAlchemyError as e:
        return server_error("Error While Geting Orders", e)


@router.get("/all-orders", response_model=List[schemas.OrderRead])
async def all_orders(user: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return crud.list_all_orders(db)
    except SQLAlchemyError as e:
        return server_error("Error While Getting Orders", e)


@router.put("/order-status/{order_id}", response_model=schemas.OrderRead)
async def order_status(
    order_id: str,
    user: models.User = Depends(require_admin),
    payload: dict = Depends(json_object),
    db: Session = Depends(get_db),
):
    status = payload.get("status")
    if not order_id.strip():
        return envelope(400, False, "Order ID is required")
    if not status:
        return envelope(400, False, "Status is required")
    if not isinstance(status, str) or status not in OrderStatus.values():
        allowed = ", ".join(OrderStatus.values())
        return envelope(400, False, f"Invalid status. Must be one of: {allowed}")
    try:
        order = crud.get_order(db, order_id)
        if not order:
            return envelope(404, False, "Order not found")
        updated = crud.update_order_status(db, order, status)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error While Updating Order", e)
    logger.info("order %s set to %r by %s", order_id, status, user.id)
    return updated
