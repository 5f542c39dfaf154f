"""Seed a development tenant with an owner, a worker, a project and a few tasks.

Tenant, users and memberships are platform records and go through the
unscoped data client; project content goes through the tenant-scoped client
(no realtime emission, nothing is listening).

Usage:
    uv run python -m scripts.seed_dev_data [tenant_slug]

Default slug: demo. Requires: DATABASE_URL and an existing schema
(see scripts.create_schema). Re-running with the same slug is a no-op.
"""

from __future__ import annotations

import asyncio
import sys

from app.core.config import get_settings
from app.domain.enums import TaskStatus, TenantRole
from app.infrastructure.persistence import database
from app.infrastructure.persistence.client import DataClient
from app.infrastructure.persistence.scoped_clients import ScopedClientFactory
from app.infrastructure.realtime import EventDispatcher

TASKS = [
    ("Order materials", TaskStatus.DONE),
    ("Demolition", TaskStatus.IN_PROGRESS),
    ("Install cabinets", TaskStatus.TODO),
]


async def run(slug: str) -> None:
    get_settings()
    try:
        await _seed(slug)
    finally:
        await database.dispose_engine()


async def _seed(slug: str) -> None:
    platform = DataClient(database.get_session_factory())

    if await platform.tenant.find_unique({"slug": slug}) is not None:
        print(f"Tenant {slug} already exists, skip")
        return

    tenant = await platform.tenant.create({"name": slug.title(), "slug": slug})
    print(f"Tenant {slug} -> {tenant.id}")
    owner = await platform.user.upsert(
        {"email": f"owner@{slug}.local"},
        create={"email": f"owner@{slug}.local", "name": "Owner"},
        update={},
    )
    worker = await platform.user.upsert(
        {"email": f"worker@{slug}.local"},
        create={"email": f"worker@{slug}.local", "name": "Worker"},
        update={},
    )
    await platform.membership.create(
        {"tenant_id": tenant.id, "user_id": owner.id, "role": TenantRole.OWNER.value}
    )
    await platform.membership.create(
        {"tenant_id": tenant.id, "user_id": worker.id, "role": TenantRole.WORKER.value}
    )
    print(f"  Users {owner.email}, {worker.email}")

    factory = ScopedClientFactory(platform, EventDispatcher())
    db = factory.tenant_client(tenant.id)
    project = await db.project.create({"name": "Kitchen remodel"})
    print(f"  Project {project.name} -> {project.id}")
    for title, status in TASKS:
        task = await db.task.create({"project_id": project.id, "title": title, "status": status.value})
        print(f"    Task {task.title} ({task.status})")

    print("Seed completed.")


def main() -> None:
    slug = sys.argv[1] if len(sys.argv) > 1 else "demo"
    asyncio.run(run(slug))


if __name__ == "__main__":
    main()
