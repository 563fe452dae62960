"""Command handlers and the dispatcher shared by every slash command."""
import logging

from quota import run_quota_check
from replies import chunk_message, counter_reply, quota_reply
from roster import ADD, OFFICER_ADD, TRYOUT_ADD, CounterSpec, RosterLayout, add_counters, parse_words

log = logging.getLogger("roster-bot")

INTERNAL_ERROR = "❌ Internal error."
UNKNOWN_COMMAND = "Unknown command"


async def send_final(interaction, text: str):
    """Edit the deferred reply; anything past Discord's limit goes out as followups."""
    chunks = chunk_message(text)
    await interaction.edit_original_response(content=chunks[0])
    for extra in chunks[1:]:
        await interaction.followup.send(extra)


def counter_handler(spec: CounterSpec):
    async def handler(interaction, store, layout: RosterLayout, *, user: str, amount: int):
        words = parse_words(user)
        await interaction.response.defer()
        result = await add_counters(store, layout, spec, words, amount)
        await send_final(interaction, counter_reply(result))
    handler.__name__ = f"handle_{spec.name}"
    return handler


async def handle_quotacheck(interaction, store, layout: RosterLayout):
    await interaction.response.defer()
    summary = await run_quota_check(store, layout)
    await send_final(interaction, quota_reply(summary))


HANDLERS = {
    "add": counter_handler(ADD),
    "officeradd": counter_handler(OFFICER_ADD),
    "tryoutadd": counter_handler(TRYOUT_ADD),
    "quotacheck": handle_quotacheck,
}


async def report_error(interaction):
    """Tell the user something broke; never raises."""
    try:
        if not interaction.response.is_done():
            await interaction.response.send_message(INTERNAL_ERROR)
        else:
            await interaction.edit_original_response(content=INTERNAL_ERROR)
    except Exception:
        log.exception("Failed to report error to Discord")


async def dispatch(name: str, interaction, store, layout: RosterLayout, **options):
    handler = HANDLERS.get(name)
    if handler is None:
        await interaction.response.send_message(UNKNOWN_COMMAND, ephemeral=True)
        return

    try:
        await handler(interaction, store, layout, **options)
    except Exception:
        log.exception(f"Unhandled error in /{name} handler")
        await report_error(interaction)
