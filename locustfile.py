from locust import HttpUser, task, between
import random

PRODUCT = "/api/v1/product"
KEYWORDS = ["book", "laptop", "phone", "shirt", "novel"]

class ShopperUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Browse the same catalog slice a storefront home page would load
        r = self.client.get(f"{PRODUCT}/get-product")
        if r.status_code == 200:
            self.slugs = [p["slug"] for p in r.json().get("products", [])]
        else:
            self.slugs = []

    @task(3)
    def list_products(self):
        self.client.get(f"{PRODUCT}/get-product")
        self.client.get(f"{PRODUCT}/product-count")

    @task(2)
    def view_product(self):
        if not self.slugs:
            return
        self.client.get(f"{PRODUCT}/get-product/{random.choice(self.slugs)}", name=f"{PRODUCT}/get-product/[slug]")

    @task(1)
    def list_categories(self):
        self.client.get("/api/v1/category/get-category")

    @task(1)
    def search(self):
        keyword = random.choice(KEYWORDS)
        self.client.get(f"{PRODUCT}/search/{keyword}", name=f"{PRODUCT}/search/[keyword]")
