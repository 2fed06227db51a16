#!/usr/bin/env python3
# scripts/create_admin.py
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import crud  # noqa: E402
import orm  # noqa: E402,F401
from db import Base, SessionLocal, engine  # noqa: E402
from models import UserIn  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Create the first admin user.")
    ap.add_argument("--open-id", default="admin", help="Unique login identifier (default: admin)")
    ap.add_argument("--name", default="Admin")
    ap.add_argument("--email", default=None)
    args = ap.parse_args()

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if crud.open_id_exists(db, args.open_id):
            print(f"user {args.open_id!r} already exists; nothing to do")
            return
        user = crud.create_user(
            db,
            UserIn(open_id=args.open_id, name=args.name, email=args.email, role="admin"),
        )
        print(f"created admin id={user.id} open_id={user.open_id}")
        print(f"send 'X-User-Id: {user.id}' with API requests")
    finally:
        db.close()


if __name__ == "__main__":
    main()
