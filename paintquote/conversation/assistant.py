"""
Conversation replies and optional AI field extraction.

Replies are plain templates per stage. When OPENROUTER_API_KEY is set, free
text is also sent to a chat-completion model that returns JSON field values;
any failure there falls back to the rule parser's result.
"""

import json
import logging
import urllib.error
import urllib.request
from typing import Optional

from ..config import settings

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

CATEGORY_LABELS = {
    "wall_paint": "wall paint",
    "ceiling_paint": "ceiling paint",
    "trim_paint": "trim paint",
    "primer": "primer",
}

GREETING = (
    "Hi! I'll help you put together a painting quote. "
    "What's the customer's name and the property address?"
)


def ai_extraction_enabled() -> bool:
    return bool(settings.OPENROUTER_API_KEY)


def extract_fields_with_ai(stage: str, message: str, questions: list[dict]) -> dict:
    """
    Ask the model for field values stated in the message.

    Returns {field_id: value} for this stage's questions only.
    Empty dict when no key is configured or the call fails.
    """
    if not ai_extraction_enabled() or not questions:
        return {}

    prompt = _build_extraction_prompt(stage, message, questions)
    raw = _call_openrouter(prompt)
    allowed = {q["id"] for q in questions}
    return {k: v for k, v in raw.items() if k in allowed and v not in (None, "")}


def _build_extraction_prompt(stage: str, message: str, questions: list[dict]) -> str:
    field_lines = []
    for q in questions:
        line = f"- {q['id']} ({q.get('type', 'text')}): {q['text']}"
        if q.get("options"):
            line += f" Options: {', '.join(str(o) for o in q['options'])}"
        if q.get("unit"):
            line += f" Unit: {q['unit']}"
        field_lines.append(line)
    fields_block = "\n".join(field_lines)

    return f"""You are helping a painting contractor build a quote. The conversation is at the "{stage}" step.

The contractor wrote:
\"\"\"{message}\"\"\"

Extract values for these fields only if they are CLEARLY stated:
{fields_block}

RULES:
- Numbers as plain numbers (no units)
- Choice fields must use one of the listed options exactly
- multi_choice fields are JSON arrays of options
- Paint fields are {{"quality": "good|better|best|premium"}} or {{"product_id": number}}
- Leave out anything not stated. Never guess measurements.

Return ONLY a JSON object of field_id: value pairs, or {{}} if nothing applies."""


def _call_openrouter(prompt: str) -> dict:
    """
    POST a single-message chat completion and parse the reply as JSON.
    Falls back to empty dict on any error.
    """
    payload = json.dumps({
        "model": settings.OPENROUTER_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": 0.1,
        "response_format": {"type": "json_object"},
    }).encode("utf-8")

    req = urllib.request.Request(
        OPENROUTER_URL,
        data=payload,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        },
        method="POST",
    )

    try:
        with urllib.request.urlopen(req, timeout=30) as response:
            result = json.loads(response.read())
            text = result["choices"][0]["message"]["content"]
            parsed = json.loads(text)
            if isinstance(parsed, dict):
                return parsed
            return {}
    except (urllib.error.URLError, TimeoutError, ValueError, KeyError, IndexError) as e:
        logger.warning("AI field extraction failed: %s", e)
        return {}


# --- Reply templates ---

def build_reply(stage: str, fields: dict, next_questions: list[dict],
                rejected: Optional[list] = None, paint_category: Optional[str] = None,
                pricing: Optional[dict] = None, quote_number: Optional[str] = None) -> str:
    """The assistant's next message for the stage the session is now in."""
    lines = []
    for r in rejected or []:
        lines.append(f"I couldn't use that: {r.reason}.")

    if stage == "customer_info":
        if fields.get("customer_name") and not fields.get("address"):
            lines.append(f"Got it, {fields['customer_name']}. What's the property address?")
        elif fields.get("address") and not fields.get("customer_name"):
            lines.append("Got the address. What's the customer's name?")
        else:
            lines.append("What's the customer's name and the property address?")

    elif stage == "project_type":
        lines.append(
            f"Thanks! Quote for {fields.get('customer_name')} at {fields.get('address')}. "
            "Is this interior, exterior, or both?"
        )

    elif stage == "surface_selection":
        if fields.get("project_type") == "exterior":
            lines.append("Which surfaces are we painting: walls, trim, or both? "
                         "(Ceilings don't apply to exterior work.)")
        else:
            lines.append("Which surfaces are we painting: walls, ceilings, trim, or all of them?")

    elif stage == "dimensions":
        method = fields.get("measurement_method")
        if not method:
            lines.append(
                "How would you like to measure? Give me the total floor area (e.g. '1800 sqft'), "
                "the square footage per surface (e.g. 'walls 2500, trim 400'), or rooms "
                "with dimensions (e.g. '2 bedrooms 15 x 9, 9 ft ceilings')."
            )
        else:
            wanted = ", ".join(q["text"].lower() for q in next_questions) or "the measurements"
            lines.append(f"I still need {wanted}.")

    elif stage == "paint_selection":
        label = CATEGORY_LABELS.get(paint_category or "", "paint")
        lines.append(
            f"Which {label} would you like? Give me a product number from your catalog "
            "or a quality tier: good, better, best, or premium."
        )
        if not fields.get("primer"):
            lines.append("Primer is optional; say e.g. 'good primer' or 'no primer'.")

    elif stage == "markup_selection":
        lines.append("What markup should I use? Most contractors go between 15% and 50%.")

    elif stage == "review":
        lines.append(format_review(fields, pricing))
        lines.append("Should I save this quote? (yes / no, or 'start over')")

    elif stage == "complete":
        if quote_number:
            lines.append(f"Quote {quote_number} saved. You can download the PDF from the quotes page.")
        else:
            lines.append("This quote is complete.")

    return "\n".join(lines)


def format_review(fields: dict, pricing: Optional[dict]) -> str:
    lines = [
        f"Customer: {fields.get('customer_name')}",
        f"Address: {fields.get('address')}",
        f"Project: {fields.get('project_type')} ({', '.join(fields.get('surfaces') or [])})",
    ]
    if pricing:
        lines += [
            f"Labor: ${pricing['total_labor_cost']:,.2f}",
            f"Materials: ${pricing['total_material_cost']:,.2f}",
            f"Markup ({pricing['markup_percentage']:g}%): ${pricing['markup_amount']:,.2f}",
        ]
        if pricing.get("tax_amount"):
            lines.append(f"Tax ({pricing['tax_rate']:g}%): ${pricing['tax_amount']:,.2f}")
        lines.append(f"Total: ${pricing['final_price']:,.2f}")
    return "\n".join(lines)
