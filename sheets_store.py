# ==================== Imports ====================
import asyncio
import logging
from datetime import datetime

import gspread
from oauth2client.service_account import ServiceAccountCredentials

log = logging.getLogger("roster-bot")

scope = ["https://spreadsheets.google.com/feeds", "https://www.googleapis.com/auth/spreadsheets"]

# ==================== Runtime state / health ====================
HEALTH = {
    "sheets_ready": False,
    "last_error": "",
    "boot_started_at": datetime.now().strftime("%H:%M:%S"),
}


class SheetsStore:
    """Range reads and batched writes against one spreadsheet.

    gspread is blocking, so every call runs in a worker thread.
    """

    def __init__(self, spreadsheet: gspread.Spreadsheet):
        self.spreadsheet = spreadsheet

    async def get_values(self, rng: str) -> list[list]:
        """Rows in range order; Sheets omits trailing empty rows and cells."""
        res = await asyncio.to_thread(self.spreadsheet.values_get, rng)
        return res.get("values", [])

    async def batch_update(self, updates: list[dict]) -> None:
        if not updates:
            return
        await asyncio.to_thread(
            self.spreadsheet.values_batch_update,
            {"valueInputOption": "USER_ENTERED", "data": updates},
        )


def open_store(credentials_file: str, spreadsheet_id: str) -> SheetsStore:
    creds = ServiceAccountCredentials.from_json_keyfile_name(credentials_file, scope)
    gs_client = gspread.authorize(creds)
    return SheetsStore(gs_client.open_by_key(spreadsheet_id))


async def init_store_with_retry(credentials_file: str, spreadsheet_id: str | None, max_tries: int = 5):
    """Open the spreadsheet in the background; returns the store or None after giving up."""
    if not spreadsheet_id:
        HEALTH["last_error"] = "Missing SPREADSHEET_ID in .env"
        log.error(f"[Sheets] {HEALTH['last_error']}")
        return None

    wait = 2
    for attempt in range(1, max_tries + 1):
        try:
            log.info(f"[Sheets] Initializing (attempt {attempt}/{max_tries})...")
            store = await asyncio.to_thread(open_store, credentials_file, spreadsheet_id)
            HEALTH["sheets_ready"] = True
            HEALTH["last_error"] = ""
            log.info("[Sheets] Ready.")
            return store
        except Exception as e:
            HEALTH["last_error"] = f"Sheets init failed (attempt {attempt}): {e}"
            log.warning(HEALTH["last_error"])
            if attempt == max_tries:
                log.error("[Sheets] Giving up after retries.")
                return None
            await asyncio.sleep(wait)
            wait = min(wait * 2, 30)
