"""Tests for the subscription index."""

import uuid

from conftest import SERVICE_A, SERVICE_B
from notification_hub.services.device_registry import DeviceRegistry
from notification_hub.services.subscription_index import SubscriptionIndex


class TestSubscriptionIndex:

    async def test_upsert_overwrites_topics_and_reenables(self, db, register):
        device_id = await register("user-a", "https://push.example/1", topics=["fills"])
        index = SubscriptionIndex(db)

        assert await index.disable(device_id, SERVICE_A) is True
        await db.commit()

        await index.upsert(device_id, SERVICE_A, {"risk_events", "system"})
        await db.commit()

        row = await index.get(device_id, SERVICE_A)
        assert row.topics == ["risk_events", "system"]
        assert row.disabled_at is None
        assert row.is_enabled

    async def test_disable_missing_row_returns_false(self, db, register):
        device_id = await register("user-a", "https://push.example/1")
        index = SubscriptionIndex(db)

        assert await index.disable(device_id, SERVICE_B) is False
        assert await index.disable(uuid.uuid4(), SERVICE_A) is False

    async def test_disable_is_idempotent(self, db, register):
        device_id = await register("user-a", "https://push.example/1")
        index = SubscriptionIndex(db)

        assert await index.disable(device_id, SERVICE_A) is True
        await db.commit()
        first = (await index.get(device_id, SERVICE_A)).disabled_at

        assert await index.disable(device_id, SERVICE_A) is True
        await db.commit()
        second = (await index.get(device_id, SERVICE_A)).disabled_at

        assert first is not None
        assert first == second

    async def test_disable_leaves_other_services_and_device(self, db, register):
        device_id = await register("user-a", "https://push.example/1", service_id=SERVICE_A)
        await register("user-a", "https://push.example/1", service_id=SERVICE_B)
        index = SubscriptionIndex(db)

        await index.disable(device_id, SERVICE_A)
        await db.commit()

        assert await index.list_eligible("user-a", SERVICE_A) == []
        eligible_b = await index.list_eligible("user-a", SERVICE_B)
        assert [t.device_id for t in eligible_b] == [device_id]
        device = await DeviceRegistry(db).get(device_id)
        assert device.is_active is True

    async def test_list_eligible_excludes_dead_devices(self, db, register):
        live = await register("user-a", "https://push.example/live", topics=["fills"])
        dead = await register("user-a", "https://push.example/dead")
        await register("user-b", "https://push.example/other-user")
        await DeviceRegistry(db).mark_dead(dead)
        await db.commit()

        eligible = await SubscriptionIndex(db).list_eligible("user-a", SERVICE_A)

        assert [t.device_id for t in eligible] == [live]
        assert eligible[0].topics == frozenset({"fills"})
        assert eligible[0].subscription_info == {
            "endpoint": "https://push.example/live",
            "keys": {"p256dh": "BPublicKey", "auth": "authSecret"},
        }

    async def test_list_eligible_is_stable(self, db, register):
        for n in range(4):
            await register("user-a", f"https://push.example/{n}")
        index = SubscriptionIndex(db)

        first = await index.list_eligible("user-a", SERVICE_A)
        second = await index.list_eligible("user-a", SERVICE_A)
        assert [t.device_id for t in first] == [t.device_id for t in second]
        assert len(first) == 4

    async def test_disable_all_spans_services(self, db, register):
        device_id = await register("user-a", "https://push.example/1", service_id=SERVICE_A)
        await register("user-a", "https://push.example/1", service_id=SERVICE_B)
        index = SubscriptionIndex(db)

        assert await index.disable_all(device_id) == 2
        assert await index.disable_all(device_id) == 0
        await db.commit()

        rows = await index.list_for_device(device_id)
        assert [r.service_id for r in rows] == [SERVICE_A, SERVICE_B]
        assert all(r.disabled_at is not None for r in rows)
