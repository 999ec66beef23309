from locust import HttpUser, task, between
import random

API = "/api/v1"


class Customer(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Register and log in; the session keeps the auth cookies
        uid = random.randint(1, 1_000_000)
        email = f"load_{uid}@example.com"
        password = "loadtest-pass"
        self.client.post(f"{API}/users", json={"username": f"load_{uid}", "email": email, "password": password})
        r = self.client.post(f"{API}/auth/login", json={"email": email, "password": password})
        self.logged_in = r.status_code == 200
        self.dish_ids = []

    @task(3)
    def browse_dishes(self):
        r = self.client.get(f"{API}/dishes")
        if r.status_code == 200:
            self.dish_ids = [d["id"] for d in r.json()]

    @task(2)
    def place_order(self):
        if not self.logged_in or not self.dish_ids:
            return
        items = [{"dishId": d, "quantity": random.randint(1, 3)} for d in random.sample(self.dish_ids, k=min(2, len(self.dish_ids)))]
        self.client.post(f"{API}/orders", json={"items": items, "deliveryAddress": "1 Load St", "paid": True})

    @task(1)
    def my_orders(self):
        if self.logged_in:
            self.client.get(f"{API}/orders")
