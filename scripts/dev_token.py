#!/usr/bin/env python3
"""
Mint a local access token for development and store it.

Production tokens come from the hosted auth provider; this signs one with
the same shared secret so the API can be exercised locally.

Usage:
    python scripts/dev_token.py
    python scripts/dev_token.py --sub 6f1c2d7e-3b7a-4c1e-9a55-2f8d3c0e4b11 --email hebamme@example.de
"""

import argparse
import sys
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

from jose import jwt

sys.path.insert(0, str(Path(__file__).parent.parent))

from homebirth.config import settings  # noqa: E402

TOKEN_FILE = Path(__file__).parent.parent / ".token"


def mint(subject: str, email: str | None, hours: int) -> str:
    """Sign a provider-shaped token."""
    claims = {
        "sub": subject,
        "aud": settings.jwt_audience,
        "exp": datetime.now(UTC) + timedelta(hours=hours),
        "iat": datetime.now(UTC),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


if __name__ == "__main__":
    if settings.environment == "production":
        print("ERROR: Refusing to mint tokens in production")
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Mint a development access token")
    parser.add_argument("--sub", default=str(uuid.uuid4()), help="Subject (profile id)")
    parser.add_argument("--email", default=None)
    parser.add_argument("--hours", type=int, default=12)
    parser.add_argument("--no-store", action="store_true", help="Print only, do not write .token")
    args = parser.parse_args()

    token = mint(args.sub, args.email, args.hours)
    if not args.no_store:
        TOKEN_FILE.write_text(token)
    print(f"Subject: {args.sub}")
    print(f"Token: {token}")
