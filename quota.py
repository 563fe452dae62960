"""
Weekly quota check.

Per sheet, two blocks are read once each and reconciled:

  Top block A7:J13
    B: name          D, E: weekly counters (reset to 0)
    F: missed quotas G: tryouts (reset to 0 on rows 7-10 only)
    H: exempt        J: quota passed
    Row 7 is reset but never quota-evaluated.

  Bottom block A19:I40
    B: name          D: weekly counter (reset to 0)
    F: missed quotas G: exempt    I: quota passed

Rows with an empty name are left untouched. All writes for a sheet go out in
a single batch.
"""
import logging
from dataclasses import dataclass, field

from roster import (
    ID_COL,
    PendingWrites,
    RosterLayout,
    apply_delta,
    cell_at,
    cell_text,
    flush,
    is_checked,
)

log = logging.getLogger("roster-bot")


@dataclass(frozen=True)
class Block:
    label: str
    first_row: int
    last_row: int
    last_col: str
    passed_col: str
    exempt_col: str
    counter_col: str
    reset_cols: tuple[str, ...]
    # rows in the block that are evaluated for the quota increment
    eval_from: int
    eval_to: int

    def range_for(self, sheet: str) -> str:
        return f"{sheet}!A{self.first_row}:{self.last_col}{self.last_row}"


TOP = Block(
    label="top",
    first_row=7, last_row=13, last_col="J",
    passed_col="J", exempt_col="H", counter_col="F",
    reset_cols=("D", "E"),
    eval_from=8, eval_to=13,
)

BOTTOM = Block(
    label="bottom",
    first_row=19, last_row=40, last_col="I",
    passed_col="I", exempt_col="G", counter_col="F",
    reset_cols=("D",),
    eval_from=19, eval_to=40,
)

# Tryout counter is reset only for the narrower top-block range.
TRYOUT_RESET_COL = "G"
TRYOUT_RESET_ROWS = range(7, 11)


@dataclass(frozen=True)
class RowOutcome:
    inert: bool = False
    increment: int | None = None
    resets: tuple[str, ...] = ()


INERT = RowOutcome(inert=True)


def is_inert_row(row, layout: RosterLayout) -> bool:
    return not cell_text(cell_at(row, layout.col(ID_COL)))


def evaluate_row(row, row_number: int, block: Block, layout: RosterLayout) -> RowOutcome:
    """Decide what a single block row gets: nothing, or resets plus maybe +1."""
    if is_inert_row(row, layout):
        return INERT

    increment = None
    if block.eval_from <= row_number <= block.eval_to:
        passed = is_checked(cell_at(row, layout.col(block.passed_col)))
        exempt = is_checked(cell_at(row, layout.col(block.exempt_col)))
        if not passed and not exempt:
            increment = apply_delta(cell_at(row, layout.col(block.counter_col)), 1)

    return RowOutcome(increment=increment, resets=block.reset_cols)


@dataclass
class QuotaSummary:
    top_increments: list[dict] = field(default_factory=list)
    bottom_increments: list[dict] = field(default_factory=list)
    sheets_updated: list[str] = field(default_factory=list)


def reconcile_block(grid, block: Block, sheet: str, layout: RosterLayout, writes: PendingWrites) -> list[dict]:
    """Stage the block's writes and return its increment records in row order."""
    increments = []
    for i, row in enumerate(grid):
        row_number = block.first_row + i
        outcome = evaluate_row(row, row_number, block, layout)
        if outcome.inert:
            continue

        if outcome.increment is not None:
            writes.stage(block.counter_col, row_number, outcome.increment)
            increments.append({
                "sheet": sheet,
                "row": row_number,
                "name": cell_text(cell_at(row, layout.col(ID_COL))),
                "info": f"{block.counter_col}={outcome.increment}",
            })

        for col in outcome.resets:
            writes.stage(col, row_number, 0)
    return increments


def reset_tryouts(top_grid, layout: RosterLayout, writes: PendingWrites) -> None:
    for row_number in TRYOUT_RESET_ROWS:
        idx = row_number - TOP.first_row
        row = top_grid[idx] if idx < len(top_grid) else None
        if not is_inert_row(row, layout):
            writes.stage(TRYOUT_RESET_COL, row_number, 0)


async def check_sheet(store, sheet: str, layout: RosterLayout, summary: QuotaSummary) -> None:
    writes = PendingWrites(sheet)

    top_grid = await store.get_values(TOP.range_for(sheet))
    summary.top_increments.extend(reconcile_block(top_grid, TOP, sheet, layout, writes))
    reset_tryouts(top_grid, layout, writes)

    bottom_grid = await store.get_values(BOTTOM.range_for(sheet))
    summary.bottom_increments.extend(reconcile_block(bottom_grid, BOTTOM, sheet, layout, writes))

    if await flush(store, writes):
        summary.sheets_updated.append(sheet)
        log.info(f"[quotacheck] {sheet}: {len(writes)} cell(s) written")


async def run_quota_check(store, layout: RosterLayout) -> QuotaSummary:
    """Run the check over every configured sheet in order. Store errors propagate."""
    summary = QuotaSummary()
    for sheet in layout.sheets:
        await check_sheet(store, sheet, layout, summary)
    return summary
