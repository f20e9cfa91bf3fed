#!/usr/bin/env python3
"""
Demo Data Seeding Script for the Membership API.

Creates the sample plans used by the frontend:
- Platinum Plan (credit card, 12 monthly periods)
- Gold Plan (cash, 6 monthly periods)
- Silver Plan (credit card, 3 yearly periods)
- Trial Plan (cash, 4 weekly periods)

Usage:
    python scripts/seed_memberships.py [BASE_URL]

Requires:
    - Backend running at http://localhost:8000 (or BASE_URL)
"""
import asyncio
import sys
from datetime import date

import httpx

BASE_URL = "http://localhost:8000"

DEMO_MEMBERSHIPS = [
    {
        "name": "Platinum Plan",
        "recurringPrice": 150.0,
        "paymentMethod": "credit card",
        "billingInterval": "monthly",
        "billingPeriods": 12,
        "assignedBy": "Admin",
    },
    {
        "name": "Gold Plan",
        "recurringPrice": 100.0,
        "paymentMethod": "cash",
        "billingInterval": "monthly",
        "billingPeriods": 6,
        "assignedBy": "Admin",
    },
    {
        "name": "Silver Plan",
        "recurringPrice": 40.0,
        "paymentMethod": "credit card",
        "billingInterval": "yearly",
        "billingPeriods": 3,
    },
    {
        "name": "Trial Plan",
        "recurringPrice": 10.0,
        "paymentMethod": "cash",
        "billingInterval": "weekly",
        "billingPeriods": 4,
    },
]


async def seed(base_url: str) -> int:
    """Create the demo memberships, return the number created."""
    created = 0
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        response = await client.get("/api/health")
        if response.status_code != 200:
            print(f"API not reachable at {base_url}: {response.text}")
            sys.exit(1)

        for data in DEMO_MEMBERSHIPS:
            payload = {**data, "validFrom": date.today().isoformat()}
            response = await client.post("/memberships", json=payload)
            if response.status_code != 201:
                print(f"  Failed to create {data['name']}: {response.text}")
                continue

            result = response.json()
            membership = result["membership"]
            print(
                f"  Created {membership['name']} (ID {membership['id']}): "
                f"{membership['validFrom']} - {membership['validUntil']}, "
                f"{len(result['membershipPeriods'])} periods"
            )
            created += 1

    return created


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    print(f"Seeding memberships at {base_url}...")
    created = asyncio.run(seed(base_url))
    print(f"\nDone: {created}/{len(DEMO_MEMBERSHIPS)} memberships created.")


if __name__ == "__main__":
    main()
