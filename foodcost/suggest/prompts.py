"""Prompt text shared by the LLM suggestion backends."""

from __future__ import annotations

from ..analytics.alerts import PriceTrend
from ..matching import MatchResult


def match_prompt(result: MatchResult) -> str:
    item = result.item
    options = "\n".join(
        f'{n}. "{c.ingredient.name}" ({c.ingredient.per_unit or "?"}, '
        f"${c.ingredient.unit_cost})"
        for n, c in enumerate(result.candidates, start=1)
    )
    return f"""\
Match this invoice item to the best ingredient from the list.

Invoice item: "{item.product_name}" ({item.unit or "?"}, ${item.unit_price})

Possible ingredients:
{options}

Reply with ONLY the number (1-{len(result.candidates)}) of the best match, or "0" \
if none match well. Add a brief reason after a dash.
Example: "1 - Same product, different packaging size"
"""


def trend_prompt(trend: PriceTrend, affected: list[str]) -> str:
    return f"""\
You are a restaurant cost control expert. Analyze this price change and give a \
brief, actionable recommendation (2-3 sentences max):

Ingredient: {trend.product_name}
Supplier: {trend.supplier or "Unknown"}
Price Change: ${trend.old_price:.2f} -> ${trend.new_price:.2f} per {trend.unit or "unit"} \
({trend.change_pct:+.1f}%)
Affected Dishes: {", ".join(affected) if affected else "Unknown"}
Period: {trend.old_date or "?"} to {trend.new_date or "?"}

Provide specific, practical advice for a restaurant manager.
"""


def clean_reply(text: str | None) -> str | None:
    """Strip markdown fences and whitespace; empty replies become None."""
    if not text:
        return None
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines).strip()
    return cleaned or None
