# ==================== Imports ====================
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

log = logging.getLogger("roster-bot")

# ==================== Layout ====================
DEFAULT_SHEETS = (
    "TROOPER_COMPANY",
    "TITAN_COMPANY",
    "META_SQUAD",
    "VANGUARD_COMPANY",
)

# Column indexes used when reading a row list (A=0, B=1, ...)
COLUMNS = MappingProxyType({letter: idx for idx, letter in enumerate("ABCDEFGHIJ")})

ID_COL = "B"


@dataclass(frozen=True)
class RosterLayout:
    """Sheet names and column map, built once at startup."""
    sheets: tuple[str, ...] = DEFAULT_SHEETS
    columns: Mapping[str, int] = field(default_factory=lambda: COLUMNS)

    def col(self, letter: str) -> int:
        return self.columns[letter]


def layout_from_env(raw_sheets: str | None) -> RosterLayout:
    """ROSTER_SHEETS="A, B" overrides the sheet list; blank keeps the defaults."""
    names = tuple(parse_words(raw_sheets))
    return RosterLayout(sheets=names) if names else RosterLayout()


# ==================== Cell helpers ====================
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def cell_at(row: list[Any] | None, idx: int) -> Any:
    """Cell value or None when the row is short (Sheets drops trailing blanks)."""
    if not row or idx >= len(row):
        return None
    return row[idx]


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_int(value: Any) -> int:
    """Leading integer of the cell; empty, boolean or non-numeric -> 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else 0


def is_checked(value: Any) -> bool:
    return value is True or str(value).upper() == "TRUE"


def parse_words(raw: str | None) -> list[str]:
    """Split "a, b, c" into trimmed, non-empty entries."""
    return [w.strip() for w in str(raw or "").split(",") if w.strip()]


def a1(sheet: str, col: str, row: int) -> str:
    return f"{sheet}!{col}{row}"


# ==================== Row matcher / counter mutator ====================
def find_row(grid: list[list[Any]], col_idx: int, target: str) -> int | None:
    """Index of the first row whose cell equals target exactly, else None."""
    for idx, row in enumerate(grid):
        if cell_at(row, col_idx) == target:
            return idx
    return None


def apply_delta(value: Any, delta: int) -> int:
    return to_int(value) + delta


class PendingWrites:
    """Staged single-cell writes for one sheet, keyed by cell address."""

    def __init__(self, sheet: str):
        self.sheet = sheet
        self._cells: dict[str, Any] = {}

    def stage(self, col: str, row: int, value: Any) -> None:
        self._cells[a1(self.sheet, col, row)] = value

    def __len__(self) -> int:
        return len(self._cells)

    def __bool__(self) -> bool:
        return bool(self._cells)

    def get(self, col: str, row: int, default: Any = None) -> Any:
        return self._cells.get(a1(self.sheet, col, row), default)

    def as_updates(self) -> list[dict]:
        return [{"range": rng, "values": [[value]]} for rng, value in self._cells.items()]


async def flush(store, writes: PendingWrites) -> bool:
    """Send one batch for the sheet; no call when nothing is staged."""
    if not writes:
        return False
    await store.batch_update(writes.as_updates())
    return True


# ==================== Counter commands ====================
@dataclass(frozen=True)
class CounterSpec:
    name: str
    first_row: int
    last_row: int
    last_col: str
    update_cols: tuple[str, ...]
    found_title: str
    missing_title: str
    info_labels: tuple[str, ...] = ()

    def range_for(self, sheet: str) -> str:
        return f"{sheet}!A{self.first_row}:{self.last_col}{self.last_row}"

    def info(self, values: list[int]) -> str:
        labels = self.info_labels or self.update_cols
        return ", ".join(f"{label}={v}" for label, v in zip(labels, values))


ADD = CounterSpec(
    name="add",
    first_row=1, last_row=100, last_col="D",
    update_cols=("C", "D"),
    info_labels=("Total", "Weekly"),
    found_title="Events added",
    missing_title="No words found in the sheet among",
)

OFFICER_ADD = CounterSpec(
    name="officeradd",
    first_row=7, last_row=13, last_col="E",
    update_cols=("D", "E"),
    found_title="Officer events added",
    missing_title="Officer word(s) not found in B7-B13 in any sheet",
)

TRYOUT_ADD = CounterSpec(
    name="tryoutadd",
    first_row=7, last_row=10, last_col="G",
    update_cols=("G",),
    found_title="Tryouts added",
    missing_title="Tryout word(s) not found in B7-B10 in any sheet",
)


@dataclass
class CounterResult:
    spec: CounterSpec
    words: list[str]
    updated: list[dict] = field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        found = {u["name"] for u in self.updated}
        return [w for w in self.words if w not in found]


async def add_counters(store, layout: RosterLayout, spec: CounterSpec, words: list[str], amount: int) -> CounterResult:
    """Add `amount` to each of the command's columns for every word found, one batch per sheet."""
    result = CounterResult(spec=spec, words=list(words))
    id_idx = layout.col(ID_COL)

    for sheet in layout.sheets:
        values = await store.get_values(spec.range_for(sheet))
        writes = PendingWrites(sheet)

        for word in words:
            idx = find_row(values, id_idx, word)
            if idx is None:
                continue
            row_number = idx + spec.first_row
            new_values = []
            for col in spec.update_cols:
                new_value = apply_delta(cell_at(values[idx], layout.col(col)), amount)
                writes.stage(col, row_number, new_value)
                new_values.append(new_value)
            result.updated.append({"sheet": sheet, "row": row_number, "name": word, "info": spec.info(new_values)})

        if await flush(store, writes):
            log.info(f"[{spec.name}] {sheet}: {len(writes)} cell(s) written")

    return result
