import asyncio

import pytest

import sheets_store
from sheets_store import HEALTH, SheetsStore, init_store_with_retry


class _Spreadsheet:
    def __init__(self, values=None):
        self.values = values
        self.gets = []
        self.batches = []

    def values_get(self, rng):
        self.gets.append(rng)
        return {"range": rng} if self.values is None else {"range": rng, "values": self.values}

    def values_batch_update(self, body):
        self.batches.append(body)
        return {"totalUpdatedCells": len(body["data"])}


@pytest.fixture(autouse=True)
def _reset_health(monkeypatch):
    monkeypatch.setitem(HEALTH, "sheets_ready", False)
    monkeypatch.setitem(HEALTH, "last_error", "")


def test_get_values_returns_grid():
    ss = _Spreadsheet(values=[["", "Alice", "3"]])
    grid = asyncio.run(SheetsStore(ss).get_values("TROOPER_COMPANY!A1:D100"))

    assert grid == [["", "Alice", "3"]]
    assert ss.gets == ["TROOPER_COMPANY!A1:D100"]


def test_get_values_empty_range():
    grid = asyncio.run(SheetsStore(_Spreadsheet()).get_values("META_SQUAD!A19:I40"))
    assert grid == []


def test_batch_update_sends_one_user_entered_call():
    ss = _Spreadsheet()
    updates = [
        {"range": "TITAN_COMPANY!D7", "values": [[0]]},
        {"range": "TITAN_COMPANY!E7", "values": [[0]]},
    ]
    asyncio.run(SheetsStore(ss).batch_update(updates))

    assert ss.batches == [{"valueInputOption": "USER_ENTERED", "data": updates}]


def test_batch_update_skips_empty():
    ss = _Spreadsheet()
    asyncio.run(SheetsStore(ss).batch_update([]))
    assert ss.batches == []


def test_init_without_spreadsheet_id():
    store = asyncio.run(init_store_with_retry("credentials.json", None))

    assert store is None
    assert HEALTH["sheets_ready"] is False
    assert "SPREADSHEET_ID" in HEALTH["last_error"]


def test_init_retries_then_succeeds(monkeypatch):
    attempts = []
    sleeps = []

    def fake_open(credentials_file, spreadsheet_id):
        attempts.append((credentials_file, spreadsheet_id))
        if len(attempts) < 3:
            raise OSError("network")
        return SheetsStore(_Spreadsheet())

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(sheets_store, "open_store", fake_open)
    monkeypatch.setattr(sheets_store.asyncio, "sleep", fake_sleep)

    store = asyncio.run(init_store_with_retry("creds.json", "sheet-key"))

    assert isinstance(store, SheetsStore)
    assert attempts == [("creds.json", "sheet-key")] * 3
    assert sleeps == [2, 4]
    assert HEALTH["sheets_ready"] is True
    assert HEALTH["last_error"] == ""


def test_init_gives_up(monkeypatch):
    def fake_open(credentials_file, spreadsheet_id):
        raise OSError("bad key")

    async def fake_sleep(seconds):
        pass

    monkeypatch.setattr(sheets_store, "open_store", fake_open)
    monkeypatch.setattr(sheets_store.asyncio, "sleep", fake_sleep)

    store = asyncio.run(init_store_with_retry("creds.json", "sheet-key", max_tries=2))

    assert store is None
    assert HEALTH["sheets_ready"] is False
    assert "attempt 2" in HEALTH["last_error"]
