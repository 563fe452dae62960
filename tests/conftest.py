"""Shared fakes for the store and Discord interactions."""

from __future__ import annotations

import re
from typing import Any

import pytest

from roster import RosterLayout

_RANGE = re.compile(r"^(?P<sheet>[^!]+)!(?P<c1>[A-Z])(?P<r1>\d+)(?::(?P<c2>[A-Z])(?P<r2>\d+))?$")


def _split(rng: str) -> tuple[str, str, int, str, int]:
    m = _RANGE.match(rng)
    assert m, f"bad range {rng!r}"
    c2 = m.group("c2") or m.group("c1")
    r2 = m.group("r2") or m.group("r1")
    return m.group("sheet"), m.group("c1"), int(m.group("r1")), c2, int(r2)


class FakeStore:
    """In-memory sheets that mimic the Sheets API's trimming of empty cells."""

    def __init__(self, sheets: dict[str, dict[int, dict[str, Any]]] | None = None):
        # sheet -> row number -> column letter -> value
        self.sheets = sheets or {}
        self.reads: list[str] = []
        self.write_calls: list[list[dict]] = []
        self.fail_reads = False
        self.fail_writes = False

    def set_row(self, sheet: str, row: int, **cells: Any) -> None:
        self.sheets.setdefault(sheet, {}).setdefault(row, {}).update(cells)

    def cell(self, sheet: str, col: str, row: int) -> Any:
        return self.sheets.get(sheet, {}).get(row, {}).get(col)

    async def get_values(self, rng: str) -> list[list]:
        self.reads.append(rng)
        if self.fail_reads:
            raise RuntimeError("read failed")
        sheet, c1, r1, c2, r2 = _split(rng)
        cols = [chr(c) for c in range(ord(c1), ord(c2) + 1)]
        grid = []
        for r in range(r1, r2 + 1):
            data = self.sheets.get(sheet, {}).get(r, {})
            row = [data.get(c, "") for c in cols]
            while row and row[-1] in ("", None):
                row.pop()
            grid.append(row)
        while grid and not grid[-1]:
            grid.pop()
        return grid

    async def batch_update(self, updates: list[dict]) -> None:
        if not updates:
            return
        if self.fail_writes:
            raise RuntimeError("write failed")
        self.write_calls.append(list(updates))
        for u in updates:
            sheet, col, row, _, _ = _split(u["range"])
            self.set_row(sheet, row, **{col: u["values"][0][0]})

    def writes_for(self, sheet: str) -> list[list[dict]]:
        return [call for call in self.write_calls if call and call[0]["range"].startswith(f"{sheet}!")]

    def written_ranges(self) -> list[str]:
        return [u["range"] for call in self.write_calls for u in call]


class FakeResponse:
    def __init__(self, interaction: "FakeInteraction"):
        self._interaction = interaction
        self._done = False
        self.deferred = False

    def is_done(self) -> bool:
        return self._done

    async def defer(self, ephemeral: bool = False):
        self._done = True
        self.deferred = True

    async def send_message(self, content=None, ephemeral: bool = False):
        if self._interaction.fail_send:
            raise RuntimeError("discord down")
        self._done = True
        self._interaction.sent.append({"content": content, "ephemeral": ephemeral})


class FakeFollowup:
    def __init__(self, interaction: "FakeInteraction"):
        self._interaction = interaction

    async def send(self, content=None, ephemeral: bool = False):
        self._interaction.followups.append(content)


class FakeInteraction:
    def __init__(self, fail_send: bool = False):
        self.fail_send = fail_send
        self.sent: list[dict] = []
        self.edits: list[str] = []
        self.followups: list[str] = []
        self.response = FakeResponse(self)
        self.followup = FakeFollowup(self)

    async def edit_original_response(self, content=None):
        if self.fail_send:
            raise RuntimeError("discord down")
        self.edits.append(content)

    @property
    def final_text(self) -> str:
        return self.edits[-1]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def interaction() -> FakeInteraction:
    return FakeInteraction()


@pytest.fixture
def layout() -> RosterLayout:
    return RosterLayout()
