from quota import QuotaSummary
from roster import CounterResult

DISCORD_LIMIT = 2000


def format_item(item: dict) -> str:
    return f"- {item.get('name') or '(no name)'} in {item['sheet']} row {item['row']}: {item['info']}"


def build_summary(title: str, items: list[dict]) -> str:
    if not items:
        return f"{title}: none"
    return f"{title}:\n" + "\n".join(format_item(it) for it in items)


def counter_reply(result: CounterResult) -> str:
    spec = result.spec
    if not result.updated:
        return f"❌ {spec.missing_title}: {', '.join(result.words)}"

    msg = f"✅ {spec.found_title}:\n" + "\n".join(format_item(u) for u in result.updated)
    missing = result.missing
    if missing:
        msg += f"\nNot found in any sheet: {', '.join(missing)}"
    return msg


def quota_reply(summary: QuotaSummary) -> str:
    parts = [
        build_summary("Top increments (F8-F13)", summary.top_increments),
        build_summary("Bottom increments (F19-F40)", summary.bottom_increments),
        f"Sheets updated: {', '.join(summary.sheets_updated) if summary.sheets_updated else 'none'}",
    ]
    return "✅ Quota check complete:\n" + "\n\n".join(parts)


def chunk_message(text: str, limit: int = DISCORD_LIMIT) -> list[str]:
    """Split on line boundaries so each chunk fits one Discord message."""
    if len(text) <= limit:
        return [text]

    chunks, current = [], ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
