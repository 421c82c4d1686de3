"""
Slot label matching.

Attendance records do not reference a slot by key. They carry the label the
check-in screen showed at the time, and that label changed shape over the life
of the app:

- single-day activities: "Buổi Sáng"
- multiple-day activities: "Ngày 2 - Buổi Sáng"
- older/edited slot names: "Buổi Sáng (07:00-11:30)"

`parse_label` turns a label into a `SlotLabel` (day number and slot token, either
may be missing) and `match` decides whether a record label belongs to a slot.
The rules in `match` run in a fixed order and the first rule that decides wins.
"""

import re
import unicodedata
from typing import NamedTuple, Optional


SLOT_NAMES = {
    "Buổi Sáng": "morning",
    "Buổi Chiều": "afternoon",
    "Buổi Tối": "evening",
}

SLOT_TOKENS = {
    "sáng": "morning",
    "chiều": "afternoon",
    "tối": "evening",
}

DAY_PATTERN = re.compile(r"ngày\s*(\d+)", re.IGNORECASE)
DAY_PREFIX_PATTERN = re.compile(r"ngày\s*\d+\s*-\s*", re.IGNORECASE)
SLOT_TOKEN_PATTERN = re.compile(r"buổi\s+(sáng|chiều|tối)", re.IGNORECASE)
PARENTHETICAL_PATTERN = re.compile(r"\s*\([^)]*\)\s*")


class SlotLabel(NamedTuple):
    text: str
    day: Optional[int] = None
    token: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.day is not None or self.token is not None

    @property
    def slot_key(self) -> Optional[str]:
        return SLOT_TOKENS.get(self.token) if self.token else None


def normalize_text(value) -> str:
    """NFC-normalize, trim and lowercase; anything that is not a string becomes ''"""
    if not isinstance(value, str):
        return ""
    return unicodedata.normalize("NFC", value).strip().lower()


def extract_day(label: str) -> Optional[int]:
    m = DAY_PATTERN.search(label)
    return int(m.group(1)) if m else None


def extract_token(label: str) -> Optional[str]:
    m = SLOT_TOKEN_PATTERN.search(label)
    return m.group(1).lower() if m else None


def parse_label(label) -> SlotLabel:
    text = normalize_text(label)
    return SlotLabel(text=text, day=extract_day(text), token=extract_token(text))


def strip_day_prefix(label: str) -> str:
    return DAY_PREFIX_PATTERN.sub("", label, count=1).strip()


def strip_parentheticals(label: str) -> str:
    return PARENTHETICAL_PATTERN.sub("", label).strip()


def match(record_label, target_slot_name, target_day: Optional[int] = None) -> bool:
    """
    Return True when an attendance record label refers to `target_slot_name`
    (on `target_day` for multiple-day activities).

    Rules, first decision wins:
    1. exact case-insensitive equality
    2. with a target day: the label's "Ngày N" must equal the day (hard gate),
       then equal slot tokens ("sáng"/"chiều"/"tối"), the " - <slot>" suffix,
       or equality after removing the "Ngày N - " prefix
    3. without a target day: the " - <slot>" suffix, then equal slot tokens
    4. slot name without its "(HH:MM-HH:MM)" suffix equals the label, equal
       tokens of the stripped strings, or one contains the other

    Never raises; empty or non-string input gives False.
    """
    record = parse_label(record_label)
    name = normalize_text(target_slot_name)
    if not record.text or not name:
        return False

    if record.text == name:
        return True

    name_token = extract_token(name)
    suffix = f" - {name}"

    if target_day is not None:
        if record.day != target_day:
            return False
        if record.token and name_token and record.token == name_token:
            return True
        if record.text.endswith(suffix):
            return True
        if strip_day_prefix(record.text) == name:
            return True
    else:
        if record.text.endswith(suffix):
            return True
        if record.token and name_token and record.token == name_token:
            return True

    bare_name = strip_parentheticals(name)
    if not bare_name:
        return False
    if bare_name == record.text:
        return True
    bare_token = extract_token(bare_name)
    if record.token and bare_token and record.token == bare_token:
        return True
    return bare_name in record.text or record.text in bare_name


def slot_key_for(slot_name, loose: bool = True) -> Optional[str]:
    """
    Map a slot display name to its key. The exact vocabulary is tried first;
    with `loose`, any name mentioning sáng/chiều/tối (or the English key)
    is accepted as well.
    """
    if not isinstance(slot_name, str):
        return None
    trimmed = unicodedata.normalize("NFC", slot_name).strip()
    key = SLOT_NAMES.get(trimmed)
    if key or not loose:
        return key
    lowered = trimmed.lower()
    for token, slot_key in SLOT_TOKENS.items():
        if token in lowered or slot_key in lowered:
            return slot_key
    return None
