"""Seed the service catalog and grant a user access for local testing.

    python -m scripts.seed alice@example.com algopilotx
"""

import argparse
import asyncio

from notification_hub.db import get_db_context, init_db
from notification_hub.services.catalog import ServiceCatalog

DEFAULT_SERVICES = [
    ("algopilotx", "AlgoPilotX", "algopilotx.com"),
    ("strategyfundamentals", "Strategy Fundamentals", "strategyfundamentals.com"),
]


async def seed_database(user_id: str | None, service_ids: list[str]) -> None:
    """Create the default services and optionally grant access."""
    await init_db()

    async with get_db_context() as session:
        catalog = ServiceCatalog(session)
        for service_id, name, domain_hint in DEFAULT_SERVICES:
            await catalog.ensure_service(service_id, name, domain_hint)
        print(f"Ensured services: {', '.join(s[0] for s in DEFAULT_SERVICES)}")

        if user_id:
            for service_id in service_ids or [s[0] for s in DEFAULT_SERVICES]:
                await catalog.grant_access(user_id, service_id)
                print(f"Granted {user_id} access to {service_id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed services and access grants.")
    parser.add_argument("user_id", nargs="?", help="User id to grant access to")
    parser.add_argument("service_ids", nargs="*", help="Services to grant (default: all)")
    args = parser.parse_args()
    asyncio.run(seed_database(args.user_id, args.service_ids))


if __name__ == "__main__":
    main()
