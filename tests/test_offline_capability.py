import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import runtime
from app.webapi import ClientState, MemoryOfflineStore, WebApi
from field_cache import LookupField
from offline_capability import CapabilityFlag, OfflineCapability, select_record_store
from xrmkit.errors import (
    CapabilityUndetermined,
    MissingEntityType,
    OperationFailed,
    UnavailableOffline,
)


ACCOUNT_ID = "5d9a3c2e-0000-0000-0000-000000000001"


class CountingOfflineStore(MemoryOfflineStore):
    def __init__(self, profile=None) -> None:
        super().__init__(profile)
        self.checks = []

    def is_available_offline(self, entity_type: str):
        self.checks.append(entity_type)
        return super().is_available_offline(entity_type)


class AsyncCheckStore(CountingOfflineStore):
    async def is_available_offline(self, entity_type: str):
        return CountingOfflineStore.is_available_offline(self, entity_type)


class FakeOnlineStore:
    def __init__(self) -> None:
        self.updates = []
        self.retrieves = []

    async def retrieve_record(self, entity_type, record_id, options=None):
        self.retrieves.append((entity_type, record_id, options))
        return {"name": "Contoso"}

    async def update_record(self, entity_type, record_id, data):
        self.updates.append((entity_type, record_id, data))
        return {"entityType": entity_type, "id": record_id}


class FakeAttribute:
    def __init__(self, value) -> None:
        self.value = value
        self.controls = []

    def get_value(self):
        return self.value

    def set_value(self, value) -> None:
        self.value = value


class FakeForm:
    def __init__(self, attributes: dict) -> None:
        self.attributes = attributes

    def get_attribute(self, name: str):
        return self.attributes.get(name)


def _web_api(mode: str, offline: MemoryOfflineStore) -> WebApi:
    return WebApi(online=FakeOnlineStore(), offline=offline, client=ClientState(mode))


class TestSelectRecordStore(unittest.IsolatedAsyncioTestCase):
    async def test_online_never_consults_flag(self) -> None:
        offline = CountingOfflineStore({"account": True})
        api = _web_api("online", offline)
        capability = OfflineCapability()
        store = await select_record_store(capability, None, api)
        self.assertIs(store, api.online)
        self.assertIs(capability.flag, CapabilityFlag.UNKNOWN)
        self.assertEqual(offline.checks, [])

    async def test_offline_available(self) -> None:
        offline = CountingOfflineStore({"account": True})
        api = _web_api("offline", offline)
        capability = OfflineCapability()
        self.assertIs(await select_record_store(capability, "account", api), offline)
        self.assertIs(await select_record_store(capability, "account", api), offline)
        self.assertIs(capability.flag, CapabilityFlag.AVAILABLE)
        self.assertEqual(offline.checks, ["account"])

    async def test_offline_unavailable_is_memoized(self) -> None:
        offline = CountingOfflineStore({"account": False})
        api = _web_api("offline", offline)
        capability = OfflineCapability()
        for _ in range(2):
            with self.assertRaises(UnavailableOffline):
                await select_record_store(capability, "account", api)
        self.assertIs(capability.flag, CapabilityFlag.UNAVAILABLE)
        self.assertEqual(offline.checks, ["account"])

    async def test_indeterminate_check(self) -> None:
        offline = CountingOfflineStore({})
        capability = OfflineCapability()
        with self.assertRaises(CapabilityUndetermined) as ctx:
            await select_record_store(capability, "account", _web_api("offline", offline))
        self.assertEqual(ctx.exception.entity_type, "account")
        self.assertIs(capability.flag, CapabilityFlag.UNKNOWN)

    async def test_missing_entity_type(self) -> None:
        with self.assertRaises(MissingEntityType):
            await select_record_store(OfflineCapability(), None, _web_api("offline", MemoryOfflineStore()))

    async def test_awaitable_check(self) -> None:
        offline = AsyncCheckStore({"account": True})
        capability = OfflineCapability()
        flag = await capability.resolve("account", offline)
        self.assertIs(flag, CapabilityFlag.AVAILABLE)
        self.assertIs(await capability.resolve("account", offline), CapabilityFlag.AVAILABLE)
        self.assertEqual(offline.checks, ["account"])


class TestLookupUpdate(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.attr = FakeAttribute([{"id": "{" + ACCOUNT_ID.upper() + "}", "entityType": "account", "name": "Contoso"}])
        runtime.set_form_context(FakeForm({"parentaccountid": self.attr}))

    def tearDown(self) -> None:
        runtime.reset()

    async def test_online_update(self) -> None:
        api = _web_api("online", MemoryOfflineStore())
        runtime.set_web_api(api)
        self.assertFalse(runtime.is_offline())
        result = await LookupField("parentaccountid").update({"name": "New"})
        self.assertEqual(result, {"entityType": "account", "id": ACCOUNT_ID})
        self.assertEqual(api.online.updates, [("account", ACCOUNT_ID, {"name": "New"})])

    async def test_offline_update_writes_local_store(self) -> None:
        offline = CountingOfflineStore({"account": True})
        offline.put_record("account", ACCOUNT_ID, {"name": "Old"})
        api = _web_api("offline", offline)
        runtime.set_web_api(api)
        self.assertTrue(runtime.is_offline())
        field = LookupField("parentaccountid")
        await field.update({"name": "New"})
        await field.update({"revenue": 5})
        self.assertEqual(offline.get_record("account", ACCOUNT_ID)["name"], "New")
        self.assertEqual(offline.get_record("account", ACCOUNT_ID)["revenue"], 5)
        self.assertEqual(offline.checks, ["account"])
        self.assertEqual(api.online.updates, [])

    async def test_offline_update_unknown_entity_writes_nothing(self) -> None:
        offline = CountingOfflineStore({})
        offline.put_record("account", ACCOUNT_ID, {"name": "Old"})
        api = _web_api("offline", offline)
        runtime.set_web_api(api)
        with self.assertRaises(OperationFailed) as ctx:
            await LookupField("parentaccountid").update({"name": "New"})
        self.assertIsInstance(ctx.exception.__cause__, CapabilityUndetermined)
        self.assertEqual(ctx.exception.code, "OFFLINE_CAPABILITY_UNDETERMINED")
        self.assertEqual(offline.get_record("account", ACCOUNT_ID)["name"], "Old")
        self.assertEqual(api.online.updates, [])

    async def test_offline_unavailable_has_no_online_fallback(self) -> None:
        api = _web_api("offline", MemoryOfflineStore({"account": False}))
        runtime.set_web_api(api)
        with self.assertRaises(OperationFailed) as ctx:
            await LookupField("parentaccountid").update({"name": "New"})
        self.assertIsInstance(ctx.exception.__cause__, UnavailableOffline)
        self.assertEqual(api.online.updates, [])

    async def test_update_requires_data(self) -> None:
        runtime.set_web_api(_web_api("online", MemoryOfflineStore()))
        with self.assertRaises(OperationFailed) as ctx:
            await LookupField("parentaccountid").update({})
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    async def test_retrieve_uses_online_store(self) -> None:
        api = _web_api("online", MemoryOfflineStore())
        runtime.set_web_api(api)
        record = await LookupField("parentaccountid").retrieve("?$select=name")
        self.assertEqual(record, {"name": "Contoso"})
        self.assertEqual(api.online.retrieves, [("account", ACCOUNT_ID, "?$select=name")])

    async def test_retrieve_empty_lookup(self) -> None:
        self.attr.value = None
        runtime.set_web_api(_web_api("online", MemoryOfflineStore()))
        self.assertIsNone(await LookupField("parentaccountid").retrieve())


if __name__ == "__main__":
    unittest.main()
