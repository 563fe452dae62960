# ==================== Imports ====================
import asyncio
import logging
import os

import discord
from discord import app_commands
from dotenv import load_dotenv

from dispatch import dispatch
from roster import layout_from_env
from sheets_store import HEALTH, init_store_with_retry

# ==================== Logging ====================
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("roster-bot")

# ==================== ENV ====================
load_dotenv()
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
TEST_GUILD_ID = os.getenv("DISCORD_GUILD_ID")  # optional: per-guild fast sync
SPREADSHEET_ID = os.getenv("SPREADSHEET_ID")
CREDENTIALS_FILE = os.getenv("GOOGLE_CREDENTIALS_FILE", "credentials.json")

LAYOUT = layout_from_env(os.getenv("ROSTER_SHEETS"))

# ==================== DISCORD (no privileged intents) ====================
intents = discord.Intents.default()
intents.guilds = True  # minimal
bot = discord.Client(intents=intents)
tree = app_commands.CommandTree(bot)

# ==================== Google Sheets (lazy-initialized) ====================
store = None


async def warm_sheets():
    global store
    store = await init_store_with_retry(CREDENTIALS_FILE, SPREADSHEET_ID)


def sheets_ready() -> bool:
    return HEALTH["sheets_ready"] and store is not None


async def run(name: str, interaction: discord.Interaction, **options):
    if not sheets_ready():
        await interaction.response.send_message("⚠ Sheets are still starting up. Try again in a moment.", ephemeral=True)
        return
    await dispatch(name, interaction, store, LAYOUT, **options)


async def sync_commands():
    if TEST_GUILD_ID:
        guild_obj = discord.Object(id=int(TEST_GUILD_ID))
        tree.clear_commands(guild=guild_obj)
        tree.copy_global_to(guild=guild_obj)
        await tree.sync(guild=guild_obj)
        log.info(f"✅ Per-guild commands resynced for {TEST_GUILD_ID}")
    await tree.sync()
    log.info("✅ Global commands synced")


# ==================== Events ====================
@bot.event
async def on_ready():
    asyncio.create_task(warm_sheets())  # warm Sheets in background
    log.info(f"🤖 Bot is online as {bot.user}")
    try:
        await sync_commands()
    except Exception as e:
        log.warning(f"⚠ Command sync failed: {e}")


@tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    if isinstance(error, app_commands.CommandNotFound):
        await dispatch(error.name, interaction, store, LAYOUT)
        return
    if isinstance(error, app_commands.CheckFailure):
        msg = "❌ You don't have permission to use this command."
    else:
        log.error("Unhandled app command error", exc_info=error)
        msg = "❌ Internal error."
    try:
        if interaction.response.is_done():
            await interaction.followup.send(msg, ephemeral=True)
        else:
            await interaction.response.send_message(msg, ephemeral=True)
    except Exception:
        log.exception("Failed to report error to Discord")


# ==================== Commands ====================
@tree.command(name="add", description="Add events to one or multiple words/players in the sheet")
@app_commands.describe(
    user='The word(s) to search in column B (separated by ", ")',
    events="Number of events to add",
)
@app_commands.default_permissions(manage_messages=True)
async def add(interaction: discord.Interaction, user: str, events: int):
    await run("add", interaction, user=user, amount=events)


@tree.command(name="officeradd", description="Add events only to officer words in rows B7-B13")
@app_commands.describe(
    user="Officer word(s) in B7-B13 (comma separated)",
    events="Number of events to add",
)
@app_commands.default_permissions(manage_messages=True)
async def officeradd(interaction: discord.Interaction, user: str, events: int):
    await run("officeradd", interaction, user=user, amount=events)


@tree.command(name="tryoutadd", description="Add tryouts only to words in rows B7-B10")
@app_commands.describe(
    user="Tryout word(s) in B7-B10 (comma separated)",
    tryouts="Number of tryouts to add",
)
@app_commands.default_permissions(manage_messages=True)
async def tryoutadd(interaction: discord.Interaction, user: str, tryouts: int):
    await run("tryoutadd", interaction, user=user, amount=tryouts)


@tree.command(name="quotacheck", description="Run quota checks and apply increments/resets across all sheets")
@app_commands.default_permissions(manage_messages=True)
async def quotacheck(interaction: discord.Interaction):
    await run("quotacheck", interaction)


@tree.command(name="health", description="Show bot health/status")
async def health(interaction: discord.Interaction):
    await interaction.response.send_message(
        f"Sheets ready: **{HEALTH['sheets_ready']}**\n"
        f"Sheets: {', '.join(LAYOUT.sheets)}\n"
        f"Boot started: {HEALTH['boot_started_at']}\n"
        f"Last error: `{HEALTH['last_error'] or 'none'}`",
        ephemeral=True
    )


@tree.command(name="resync", description="Sync slash commands (admin)")
@app_commands.checks.has_permissions(administrator=True)
async def resync(interaction: discord.Interaction):
    await interaction.response.defer(ephemeral=True)
    try:
        await sync_commands()
        await interaction.followup.send("✅ Commands resynced.", ephemeral=True)
    except Exception as e:
        await interaction.followup.send(f"❌ Sync failed: {e}", ephemeral=True)


# ==================== Run ====================
def main():
    if not DISCORD_TOKEN:
        raise SystemExit("Missing DISCORD_TOKEN in .env")
    bot.run(DISCORD_TOKEN)


if __name__ == "__main__":
    main()
