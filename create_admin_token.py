# create_admin_token.py
"""Mint an admin bearer token for calling the admin endpoints (ops / local testing).

Usage: python create_admin_token.py [--minutes 60]
"""
import argparse
import os
import sys
from datetime import timedelta

from dotenv import load_dotenv

project_root = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(project_root, '.env'))

try:
    from app.core.config import ADMIN_ROLE
    from app.core.security import create_access_token
except (ImportError, ValueError) as e:
    print(f"Error loading application settings: {e}")
    print("Pastikan Anda menjalankan skrip dari root direktori proyek dan SECRET_KEY sudah di-set.")
    sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an admin access token.")
    parser.add_argument("--admin-id", help="Admin id (JWT 'sub')")
    parser.add_argument("--username", default=None)
    parser.add_argument("--minutes", type=int, default=60, help="Token lifetime in minutes")
    args = parser.parse_args()

    admin_id = args.admin_id
    while not admin_id:
        admin_id = input("Enter admin id: ").strip()
        if not admin_id:
            print("Admin id cannot be empty.")

    claims = {"sub": admin_id, "role": ADMIN_ROLE}
    if args.username:
        claims["username"] = args.username

    token = create_access_token(claims, expires_delta=timedelta(minutes=args.minutes))
    print(f"Bearer token for admin '{admin_id}' (valid {args.minutes} min):")
    print(token)


if __name__ == "__main__":
    main()
