#!/usr/bin/env python3
"""
run_demo.py - End-to-end demo for the user/product/order services
- Checks every service's health endpoint
- Creates a customer and two products
- Places an order and shows the computed total
- Shows that an order for an unknown product is refused and leaves nothing behind
- Moves the order through a status change and lists orders newest first
"""

import json
import os
from typing import Any, Dict, List, Optional

import requests

class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("DEMO_BASE_URL", "http://localhost")
        self.user_url = f"{self.base_url}/user"
        self.product_url = f"{self.base_url}/product"
        self.order_url = f"{self.base_url}/order"

        self.health_endpoints = {
            "user": f"{self.user_url}/health",
            "product": f"{self.product_url}/health",
            "order": f"{self.order_url}/health",
        }

    # ---------- helpers ----------
    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def call_api(
        self,
        method: str,
        url: str,
        data: Optional[Any] = None,
        expected_status: List[int] = [200, 201],
        quiet: bool = False,
        timeout: int = 30,
    ) -> Dict[str, Any]:
        if not quiet:
            print(f"\n-> {method} {url}")
            if data is not None:
                print(f"   Body: {json.dumps(data, indent=2)}")

        try:
            resp = requests.request(method=method, url=url, json=data, timeout=timeout)
        except requests.exceptions.RequestException as e:
            if not quiet:
                print(f"   Error: \033[91m{e}\033[0m")
            return {"status": None, "data": None, "error": str(e)}

        if not quiet:
            status_color = "\033[92m" if resp.status_code in expected_status else "\033[93m"
            print(f"   Status: {status_color}{resp.status_code}\033[0m")
        try:
            js = resp.json()
        except json.JSONDecodeError:
            return {"status": resp.status_code, "data": None}
        if not quiet:
            print("   JSON:")
            print(json.dumps(js, indent=2))
        return {"status": resp.status_code, "data": js}

    # ---------- flow ----------
    def preflight_health_checks(self):
        self.show_step("Preflight: service health")
        for svc, url in self.health_endpoints.items():
            result = self.call_api("GET", url, expected_status=[200], quiet=True)
            ok = result.get("status") == 200
            color = "\033[92m" if ok else "\033[91m"
            status = "OK" if ok else f"FAIL ({result.get('status')})"
            print(f"  - {svc.ljust(10)} -> {color}{status}\033[0m")

    def run_demo(self):
        print("Starting order services demo")
        print("=" * 50)

        self.preflight_health_checks()

        self.show_step("User: create customer")
        ur = self.call_api(
            "POST",
            f"{self.user_url}/v1/users",
            data={"username": "demo", "email": "demo@example.com", "password": "P@ssw0rd!"},
            expected_status=[201, 409],
        )
        user_id = (ur.get("data") or {}).get("id")
        if ur.get("status") == 409:
            users = self.call_api("GET", f"{self.user_url}/v1/users", quiet=True).get("data") or []
            user_id = next((u["id"] for u in users if u["username"] == "demo"), None)

        self.show_step("Product: create two products")
        p1 = self.call_api("POST", f"{self.product_url}/v1/products", data={"name": "Keyboard", "price": "29.99"})
        p2 = self.call_api("POST", f"{self.product_url}/v1/products", data={"name": "Mouse", "price": "49.99"})
        p1_id = (p1.get("data") or {}).get("id")
        p2_id = (p2.get("data") or {}).get("id")
        if not (p1_id and p2_id):
            print("\033[91mProducts could not be created; stopping.\033[0m")
            return

        self.show_step("Order: place order (expect total 109.97)")
        placed = self.call_api(
            "POST",
            f"{self.order_url}/v1/orders",
            data={
                "user_id": user_id,
                "items": [
                    {"product_id": p1_id, "quantity": 2, "unit_price": "0.01"},
                    {"product_id": p2_id, "quantity": 1},
                ],
            },
            expected_status=[201],
        )
        order = placed.get("data") or {}
        print(f"Order ID: {order.get('id')}; Total: {order.get('total_amount')}")

        self.show_step("Order: unknown product is refused")
        self.call_api(
            "POST",
            f"{self.order_url}/v1/orders",
            data={"items": [{"product_id": 999999, "quantity": 1}]},
            expected_status=[500],
        )

        if order.get("id"):
            self.show_step("Order: move to processing")
            self.call_api("PATCH", f"{self.order_url}/v1/orders/{order['id']}/status", data={"status": "processing"})

            self.show_step("Order: fetch with owner and items")
            self.call_api("GET", f"{self.order_url}/v1/orders/{order['id']}")

        self.show_step("Order: list newest first")
        self.call_api("GET", f"{self.order_url}/v1/orders")

        print("\n\033[92m=== DEMO COMPLETE ===\033[0m")


if __name__ == "__main__":
    DemoRunner().run_demo()
