import argparse
import json
from pathlib import Path

from loguru import logger

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db import init_db, session_scope
from app.repositories import CustomerRepository

_SAMPLE_CUSTOMERS = [
    {"first_name": "Ann", "last_name": "Lee", "email": "ann.lee@example.com"},
    {"first_name": "Bruno", "last_name": "Diaz", "email": "bruno.diaz@example.com"},
    {"first_name": "Chen", "last_name": "Wei", "email": None},
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Insert unsynced customers for local CRM sync runs")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="JSON file with a list of {first_name, last_name, email} objects (defaults to a built-in sample)",
    )
    parser.add_argument("--limit", type=int, default=None, help="Insert at most N customers")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(get_settings())
    init_db()

    customers = _SAMPLE_CUSTOMERS
    if args.file:
        customers = json.loads(args.file.read_text(encoding="utf-8"))
        if not isinstance(customers, list):
            raise SystemExit(f"{args.file} must contain a JSON list of customers")

    inserted = 0
    with session_scope() as session:
        repo = CustomerRepository(session)
        for index, raw_customer in enumerate(customers, start=1):
            if args.limit and index > args.limit:
                break
            if not isinstance(raw_customer, dict):
                logger.warning("Ignoring non-object customer entry #{}: {}", index, raw_customer)
                continue
            repo.add_customer(
                customer_id=raw_customer.get("id"),
                first_name=raw_customer.get("first_name"),
                last_name=raw_customer.get("last_name"),
                email=raw_customer.get("email"),
            )
            inserted += 1

    logger.info("Inserted {} unsynced customers", inserted)


if __name__ == "__main__":
    main()
