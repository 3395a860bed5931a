#!/usr/bin/env python3
"""
Request, confirm and pay a booking end to end.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_book_and_pay.py --client-token <JWT> --midwife-token <JWT>

Tokens can be minted locally with scripts/dev_token.py. Both profiles must
already exist (PUT /api/v1/profiles/me).

Flow:
    1. Look up the midwife profile
    2. Client requests a booking
    3. Client sees the masked phone number
    4. Midwife confirms the booking
    5. Client opens a Stripe Checkout Session
    6. (Pay in the browser; the webhook marks the booking PAID)
    7. Client sees the full phone number
"""

import argparse
import json
import sys

import httpx

BASE_URL = "http://localhost:8000"


def api_request(token: str, method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make authenticated API request."""
    headers = {"Authorization": f"Bearer {token}"}
    url = f"{BASE_URL}{endpoint}"

    if method == "GET":
        response = httpx.get(url, headers=headers, timeout=10.0, follow_redirects=True)
    elif method == "POST":
        response = httpx.post(url, headers=headers, json=data or {}, timeout=10.0, follow_redirects=True)
    elif method == "PATCH":
        response = httpx.patch(url, headers=headers, json=data or {}, timeout=10.0, follow_redirects=True)
    else:
        raise ValueError(f"Unknown method: {method}")

    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    if fields:
        filtered = {k: result["data"].get(k) for k in fields if k in result["data"]}
        print(json.dumps(filtered, indent=2))
    else:
        print(json.dumps(result["data"], indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Complete booking and payment flow")
    parser.add_argument("--client-token", required=True, help="Access token of the client")
    parser.add_argument("--midwife-token", required=True, help="Access token of the midwife")
    args = parser.parse_args()

    # Step 1: Look up the midwife
    print_step(1, "Look up midwife profile")
    midwife_result = api_request(args.midwife_token, "GET", "/api/v1/profiles/me")
    if not print_result(midwife_result, ["id", "display_name", "role", "completed"]):
        sys.exit(1)
    midwife_id = midwife_result["data"]["id"]

    # Step 2: Request booking
    print_step(2, "Client requests booking")
    booking_result = api_request(args.client_token, "POST", "/api/v1/bookings", {
        "midwife_id": midwife_id,
    })
    if not print_result(booking_result, ["id", "status", "created_at"]):
        sys.exit(1)
    booking_id = booking_result["data"]["id"]

    # Step 3: Masked contact
    print_step(3, "Contact before payment")
    contact_result = api_request(args.client_token, "GET", f"/api/v1/bookings/{booking_id}/contact")
    if not print_result(contact_result):
        sys.exit(1)

    # Step 4: Confirm
    print_step(4, "Midwife confirms booking")
    confirm_result = api_request(args.midwife_token, "PATCH", f"/api/v1/bookings/{booking_id}/status", {
        "new_status": "CONFIRMED",
    })
    if not print_result(confirm_result, ["id", "status"]):
        sys.exit(1)

    # Step 5: Checkout
    print_step(5, "Client opens checkout")
    checkout_result = api_request(args.client_token, "POST", f"/api/v1/bookings/{booking_id}/checkout")
    if not print_result(checkout_result):
        sys.exit(1)

    print(f"\nPay here: {checkout_result['data']['url']}")
    input("Press Enter once the payment went through...")

    # Step 7: Unmasked contact
    print_step(7, "Contact after payment")
    contact_result = api_request(args.client_token, "GET", f"/api/v1/bookings/{booking_id}/contact")
    if not print_result(contact_result):
        sys.exit(1)

    print("\n" + "="*60)
    print("FLOW COMPLETE" if not contact_result["data"].get("is_masked") else "BOOKING NOT PAID YET")
    print("="*60)


if __name__ == "__main__":
    main()
