"""
Rule-based free-text parser for the quote conversation.

Each parse_* function reads one message and returns {field_id: value} for
the fields it could find. Nothing is guessed: a value that isn't clearly
stated is left out, and the engine asks for it again.
"""

import re
from typing import Optional

from ..calculators.measurements import room_from_dimensions

ROOM_TYPES = {
    "bedroom": "bedroom",
    "bed room": "bedroom",
    "bathroom": "bathroom",
    "bath": "bathroom",
    "kitchen": "kitchen",
    "living room": "living",
    "living": "living",
    "family room": "living",
    "dining room": "dining",
    "dining": "dining",
    "hallway": "hallway",
    "hall": "hallway",
    "office": "office",
    "room": "other",
    "area": "other",
}

ADDRESS_KEYWORDS = [
    "street", "st", "avenue", "ave", "road", "rd", "drive", "dr", "lane", "ln",
    "way", "court", "ct", "blvd", "boulevard", "place", "pl", "circle", "cir",
]

QUALITY_KEYWORDS = {
    "premium": ["premium", "top of the line", "top-of-the-line", "luxury", "high end", "high-end"],
    "best": ["best", "top quality", "high quality"],
    "better": ["better", "mid", "middle", "standard"],
    "good": ["good", "basic", "budget", "cheap", "economy", "contractor grade"],
}

YES_WORDS = [
    "yes", "yeah", "yep", "ok", "okay", "sure", "correct", "right", "approve",
    "accept", "confirm", "save", "proceed", "go ahead", "looks good", "perfect",
    "sounds good", "save it", "that works",
]
NO_WORDS = ["no", "nope", "not yet", "cancel", "stop", "wait", "hold on", "wrong"]

_NUM = r"(\d+(?:,\d{3})*(?:\.\d+)?)"
_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}")
_ADDRESS_RE = re.compile(
    r"(\d+\s+[\w .'-]*?\b(?:%s)\b\.?(?:[\w ,.'-]*)?)" % "|".join(ADDRESS_KEYWORDS),
    re.IGNORECASE,
)


def _number(text: str) -> float:
    return float(text.replace(",", ""))


def _has_word(text: str, word: str) -> bool:
    return re.search(r"\b%s\b" % re.escape(word), text) is not None


# --- customer_info ---

def parse_customer_info(text: str) -> dict:
    """
    Handles "John Smith at 123 Main St", "name is X and the address is Y",
    "it's for X at Y", and an email or phone anywhere in the message.
    """
    found = {}
    clean = text.strip().rstrip(".")
    lower = clean.lower()

    email = _EMAIL_RE.search(clean)
    if email:
        found["customer_email"] = email.group(0)
        clean = clean.replace(email.group(0), " ")
    phone = _PHONE_RE.search(clean)
    if phone:
        found["customer_phone"] = phone.group(0)
        clean = clean.replace(phone.group(0), " ")
    clean = re.sub(r"\s*,\s*(?:,\s*)*$", "", clean.strip())

    name_match = re.search(r"name\s+is\s+(.+?)(?:\s*,|\s+and\b|$)", clean, re.IGNORECASE)
    address_match = re.search(r"address\s+is\s+(.+)$", clean, re.IGNORECASE)
    if name_match or address_match:
        if name_match:
            found["customer_name"] = name_match.group(1).strip()
        if address_match:
            found["address"] = address_match.group(1).strip().rstrip(",")
        return found

    for_at = re.search(r"(?:it'?s\s+for|quote\s+for|for)\s+([A-Za-z][A-Za-z .'-]*?)\s+at\s+(.+)$",
                       clean, re.IGNORECASE)
    if for_at:
        found["customer_name"] = for_at.group(1).strip()
        found["address"] = for_at.group(2).strip()
        return found

    if " at " in lower and re.search(r"\d", clean):
        name, _, address = clean.partition(" at ")
        found["customer_name"] = name.strip(" ,")
        found["address"] = address.strip(" ,")
        return found

    address = _ADDRESS_RE.search(clean)
    if address:
        found["address"] = address.group(1).strip(" ,")
        name = clean[:address.start()].strip(" ,")
        name = re.sub(r"\s+(?:and|lives)$", "", name, flags=re.IGNORECASE).strip(" ,")
        if name:
            found["customer_name"] = name
        return found

    # A bare name: no digits, a few words
    if clean and not re.search(r"\d", clean) and len(clean.split()) <= 5:
        found["customer_name"] = clean
    return found


# --- project_type ---

def parse_project_type(text: str) -> dict:
    lower = text.lower()
    has_interior = "interior" in lower or "inside" in lower
    has_exterior = "exterior" in lower or "outside" in lower
    if (has_interior and has_exterior) or _has_word(lower, "both"):
        return {"project_type": "both"}
    if has_interior:
        return {"project_type": "interior"}
    if has_exterior:
        return {"project_type": "exterior"}
    return {}


# --- surface_selection ---

_SURFACE_WORDS = {
    "walls": ["wall"],
    "ceilings": ["ceiling"],
    "trim": ["trim", "baseboard", "casing"],
}


def parse_surfaces(text: str, project_type: Optional[str] = None) -> dict:
    """
    Handles "walls and trim", "everything", "all but ceilings", "no trim".
    Ceilings are never offered on exterior-only jobs.
    """
    lower = text.lower()
    available = ["walls", "ceilings", "trim"]
    if project_type == "exterior":
        available.remove("ceilings")

    excluded = set()
    for surface, words in _SURFACE_WORDS.items():
        for word in words:
            if re.search(r"\b(?:no|not|skip|except|excluding|without|but)\s+(?:the\s+)?%s" % word, lower):
                excluded.add(surface)

    if re.search(r"\b(?:all|everything|every surface)\b", lower):
        picked = [s for s in available if s not in excluded]
    else:
        # Explicit mentions pass through; the engine rejects surfaces the job can't have
        picked = [
            s for s in _SURFACE_WORDS
            if s not in excluded and any(w in lower for w in _SURFACE_WORDS[s])
        ]
    return {"surfaces": picked} if picked else {}


# --- dimensions ---

_ROOM_WORDS = "|".join(sorted((re.escape(k) for k in ROOM_TYPES), key=len, reverse=True))
_ROOM_RE = re.compile(
    r"(?:(\d+)\s+)?(%s)s?\b[^\d,;]*?%s\s*(?:ft|feet|')?\s*(?:x|by|\*|\u00d7)\s*%s" % (_ROOM_WORDS, _NUM, _NUM),
    re.IGNORECASE,
)
_HEIGHT_RE = re.compile(
    r"%s\s*(?:ft|feet|foot|')\s*(?:high\s+|tall\s+)?ceilings?|ceilings?\s+(?:are|is|of)?\s*%s\s*(?:ft|feet|foot|')"
    % (_NUM, _NUM),
    re.IGNORECASE,
)
_SQFT = r"\s*(?:sq\.?\s*ft|sqft|square\s*feet|square\s*foot|sf)\b"


def _surface_amount(lower: str, words: list[str]) -> Optional[float]:
    for word in words:
        m = re.search(r"%ss?\b\D{0,20}?%s" % (word, _NUM), lower)
        if m:
            return _number(m.group(1))
        m = re.search(r"%s(?:%s)?\s+(?:of\s+)?%ss?\b" % (_NUM, _SQFT, word), lower)
        if m:
            return _number(m.group(1))
    return None


def parse_rooms(text: str) -> list[dict]:
    """'2 bedrooms 15 x 9, kitchen 12 x 10, 9 ft ceilings' -> room dicts."""
    height = None
    height_match = _HEIGHT_RE.search(text)
    if height_match:
        height = _number(height_match.group(1) or height_match.group(2))

    rooms = []
    for match in _ROOM_RE.finditer(text):
        count = int(match.group(1)) if match.group(1) else 1
        word = match.group(2).lower()
        room_type = ROOM_TYPES[word]
        length = _number(match.group(3))
        width = _number(match.group(4))
        label = word.title()
        for i in range(count):
            name = f"{label} {i + 1}" if count > 1 else label
            rooms.append(room_from_dimensions(
                name=name, length=length, width=width, height=height, room_type=room_type,
            ).model_dump())
    return rooms


def parse_dimensions(text: str) -> dict:
    """
    Picks the measurement method from what the message contains:
    rooms with L x W, per-surface square footage, or a single floor area.
    """
    lower = text.lower()

    rooms = parse_rooms(text)
    if rooms:
        return {"measurement_method": "rooms", "rooms": rooms}

    surface_values = {}
    for surface, words in _SURFACE_WORDS.items():
        amount = _surface_amount(lower, words)
        if amount is not None:
            surface_values[f"{surface}_sqft"] = amount
    if surface_values:
        return {"measurement_method": "surface_totals", **surface_values}

    area = re.search(_NUM + _SQFT, lower)
    if area is None:
        area = re.search(r"(?:floor area|house|home|total)\D{0,20}?" + _NUM, lower)
    if area is None:
        bare = re.fullmatch(r"\s*" + _NUM + r"\s*", lower)
        area = bare
    if area:
        return {"measurement_method": "floor_area", "total_sqft": _number(area.group(1))}

    # Method named without numbers yet
    if re.search(r"room[\s-]*by[\s-]*room|\brooms\b", lower):
        return {"measurement_method": "rooms"}
    if re.search(r"each surface|per surface|surface totals|by surface", lower):
        return {"measurement_method": "surface_totals"}
    if re.search(r"floor area|total area|square footage of the (?:house|home)", lower):
        return {"measurement_method": "floor_area"}
    return {}


# --- paint_selection ---

def parse_quality(text: str) -> Optional[str]:
    lower = text.lower()
    for tier, words in QUALITY_KEYWORDS.items():
        if any(_has_word(lower, w) for w in words):
            return tier
    return None


_PRIMER_RE = re.compile(r"(?:\b([\w-]+)\s+primer\b|\bprimer\W{0,3}([\w-]+))")


def parse_paint_choice(text: str, category: Optional[str]) -> dict:
    """
    A quality tier or product number for the current category.
    "no primer" / "good primer" answers the optional primer question.
    """
    lower = text.lower()
    found = {}
    rest = lower

    primer = _PRIMER_RE.search(lower)
    if primer:
        word = primer.group(1) or primer.group(2)
        if word in ("no", "skip", "without", "none"):
            found["primer"] = {"none": True}
        else:
            tier = parse_quality(word)
            if tier:
                found["primer"] = {"quality": tier}
        rest = lower[:primer.start()] + lower[primer.end():]

    if category:
        product = re.search(r"(?:product|#|id)\s*(\d+)", rest)
        if product:
            found[category] = {"product_id": int(product.group(1))}
        else:
            tier = parse_quality(rest)
            if tier:
                found[category] = {"quality": tier}
    return found


# --- markup_selection ---

def parse_markup(text: str) -> dict:
    lower = text.lower()
    m = re.search(r"(\d+(?:\.\d+)?)\s*(?:%|percent)", lower)
    if m is None:
        m = re.search(r"(?:markup|margin)\D{0,15}?(\d+(?:\.\d+)?)", lower)
    if m is None:
        m = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*", lower)
    if m:
        return {"markup_percentage": float(m.group(1))}
    return {}


# --- review ---

def parse_confirmation(text: str) -> dict:
    lower = text.lower().strip().rstrip("!.")
    if any(lower == w or lower.startswith(w + " ") for w in NO_WORDS):
        return {"confirmed": False}
    if any(lower == w or lower.startswith(w + " ") or lower.endswith(" " + w) for w in YES_WORDS):
        return {"confirmed": True}
    return {}


def parse_message(stage: str, text: str, fields: dict, paint_category: Optional[str] = None) -> dict:
    """Dispatch to the parser for the current stage."""
    if stage == "customer_info":
        return parse_customer_info(text)
    if stage == "project_type":
        return parse_project_type(text)
    if stage == "surface_selection":
        return parse_surfaces(text, fields.get("project_type"))
    if stage == "dimensions":
        return parse_dimensions(text)
    if stage == "paint_selection":
        return parse_paint_choice(text, paint_category)
    if stage == "markup_selection":
        return parse_markup(text)
    if stage == "review":
        return parse_confirmation(text)
    return {}


def is_restart_request(text: str) -> bool:
    lower = text.lower().strip()
    return bool(re.search(r"\b(?:restart|start over|start again|from scratch|reset)\b", lower))
