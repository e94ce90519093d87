"""HTTP client for the storefront REST API.

Every call goes through `ApiClient.request`, which reads the current token
from the auth context and attaches it to that one request.
"""
import logging
from typing import Any, Optional

import httpx

from .state import AuthContext, CartContext

logger = logging.getLogger(__name__)

AUTH = "/api/v1/auth"
CATEGORY = "/api/v1/category"
PRODUCT = "/api/v1/product"


class ApiRequestError(Exception):
    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        message = body.get("message") if isinstance(body, dict) else None
        super().__init__(f"{status_code}: {message or 'Something went wrong'}")

    @property
    def message(self) -> str:
        if isinstance(self.body, dict) and self.body.get("message"):
            return self.body["message"]
        return "Something went wrong"


class ApiClient:
    def __init__(
        self,
        auth: Optional[AuthContext] = None,
        cart: Optional[CartContext] = None,
        base_url: str = "http://localhost:6060",
        http: Optional[httpx.Client] = None,
    ):
        self.auth = auth if auth is not None else AuthContext()
        self.cart = cart if cart is not None else CartContext()
        self.http = http if http is not None else httpx.Client(base_url=base_url)

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self.auth.auth_headers())
        return self.http.request(method, path, headers=headers, **kwargs)

    def call(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body; HTTP errors raise ApiRequestError."""
        resp = self.request(method, path, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        if resp.status_code >= 400:
            logger.info("%s %s -> %s", method, path, resp.status_code)
            raise ApiRequestError(resp.status_code, body)
        return body

    # -------------------- auth --------------------

    def register(self, **fields) -> dict:
        return self.call("POST", f"{AUTH}/register", json=fields)

    def login(self, email: str, password: str) -> dict:
        body = self.call("POST", f"{AUTH}/login", json={"email": email, "password": password})
        if body.get("success"):
            self.auth.set_state({"user": body["user"], "token": body["token"]})
        return body

    def logout(self) -> None:
        self.auth.reset()

    def forgot_password(self, email: str, answer: str, new_password: str) -> dict:
        return self.call(
            "POST", f"{AUTH}/forgot-password",
            json={"email": email, "answer": answer, "newPassword": new_password},
        )

    def update_profile(self, **fields) -> dict:
        body = self.call("PUT", f"{AUTH}/profile", json=fields)
        if body.get("success"):
            self.auth.set_state(lambda state: {**state, "user": body["updatedUser"]})
        return body

    def check_user(self) -> bool:
        try:
            return bool(self.call("GET", f"{AUTH}/user-auth").get("ok"))
        except ApiRequestError:
            return False

    def check_admin(self) -> bool:
        try:
            return bool(self.call("GET", f"{AUTH}/admin-auth").get("ok"))
        except ApiRequestError:
            return False

    def orders(self) -> list:
        return self.call("GET", f"{AUTH}/orders")

    def all_orders(self) -> list:
        return self.call("GET", f"{AUTH}/all-orders")

    def set_order_status(self, order_id: str, status: str) -> dict:
        return self.call("PUT", f"{AUTH}/order-status/{order_id}", json={"status": status})

    # -------------------- categories --------------------

    def categories(self) -> list:
        return self.call("GET", f"{CATEGORY}/get-category").get("category", [])

    def category(self, slug: str) -> dict:
        return self.call("GET", f"{CATEGORY}/single-category/{slug}")["category"]

    def create_category(self, name: str) -> dict:
        return self.call("POST", f"{CATEGORY}/create-category", json={"name": name})

    def update_category(self, category_id: str, name: str) -> dict:
        return self.call("PUT", f"{CATEGORY}/update-category/{category_id}", json={"name": name})

    def delete_category(self, category_id: str) -> dict:
        return self.call("DELETE", f"{CATEGORY}/delete-category/{category_id}")

    # -------------------- products --------------------

    def products(self) -> list:
        return self.call("GET", f"{PRODUCT}/get-product")["products"]

    def product(self, slug: str) -> dict:
        return self.call("GET", f"{PRODUCT}/get-product/{slug}")["product"]

    def product_photo(self, product_id: str) -> Optional[bytes]:
        resp = self.request("GET", f"{PRODUCT}/product-photo/{product_id}")
        if resp.status_code == 204:
            return None
        if resp.status_code >= 400:
            raise ApiRequestError(resp.status_code, resp.text)
        return resp.content

    def product_count(self) -> int:
        return self.call("GET", f"{PRODUCT}/product-count")["total"]

    def product_page(self, page: int) -> list:
        return self.call("GET", f"{PRODUCT}/product-list/{page}")["products"]

    def filter_products(self, checked: list, radio: list) -> list:
        return self.call("POST", f"{PRODUCT}/product-filters", json={"checked": checked, "radio": radio})["products"]

    def search(self, keyword: str) -> list:
        return self.call("GET", f"{PRODUCT}/search/{keyword}")

    def related_products(self, product_id: str, category_id: str) -> list:
        return self.call("GET", f"{PRODUCT}/related-product/{product_id}/{category_id}")["products"]

    def category_products(self, slug: str) -> dict:
        return self.call("GET", f"{PRODUCT}/product-category/{slug}")

    def create_product(self, fields: dict, photo: Optional[tuple] = None) -> dict:
        files = {"photo": photo} if photo else None
        return self.call("POST", f"{PRODUCT}/create-product", data=fields, files=files)

    def update_product(self, product_id: str, fields: dict, photo: Optional[tuple] = None) -> dict:
        files = {"photo": photo} if photo else None
        return self.call("PUT", f"{PRODUCT}/update-product/{product_id}", data=fields, files=files)

    def delete_product(self, product_id: str) -> dict:
        return self.call("DELETE", f"{PRODUCT}/delete-product/{product_id}")

    # -------------------- checkout --------------------

    def payment_token(self) -> str:
        return self.call("GET", f"{PRODUCT}/braintree/token")["clientToken"]

    def checkout(self, nonce: str) -> dict:
        """Pay for the current cart; the cart is emptied once the order is placed."""
        body = self.call("POST", f"{PRODUCT}/braintree/payment", json={"nonce": nonce, "cart": self.cart.state})
        if body.get("ok"):
            self.cart.reset()
        return body
