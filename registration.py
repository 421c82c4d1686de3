"""
Day/slot registration of participants.

Participants registered before day/slot registration existed carry no
`registered_day_slots` at all and count as registered for every session.
"""

from typing import FrozenSet, Optional, Tuple, Union

from schemas import Participant
from slot_matching import slot_key_for


class Unrestricted:
    """Legacy registration: every day and every slot"""

    def allows(self, day: Optional[int], slot_key: Optional[str]) -> bool:
        return True

    def __eq__(self, other):
        return isinstance(other, Unrestricted)

    def __repr__(self):
        return "Unrestricted()"


class Restricted:
    def __init__(self, day_slots: FrozenSet[Tuple[int, str]]):
        self.day_slots = frozenset(day_slots)

    def allows(self, day: Optional[int], slot_key: Optional[str]) -> bool:
        if slot_key is None:
            return False
        if day is None:
            return any(slot == slot_key for _, slot in self.day_slots)
        return (day, slot_key) in self.day_slots

    def __eq__(self, other):
        return isinstance(other, Restricted) and self.day_slots == other.day_slots

    def __repr__(self):
        return f"Restricted({sorted(self.day_slots)!r})"


Registration = Union[Unrestricted, Restricted]


def registration_of(participant: Participant) -> Registration:
    entries = participant.registered_day_slots or []
    if not entries:
        return Unrestricted()
    return Restricted(frozenset((entry.day, entry.slot) for entry in entries))


def is_slot_registered(participant: Participant, day: Optional[int], slot_name) -> bool:
    """
    Does the (day, slot) session count for this participant?

    `day` is None for single-day activities, where any entry with the slot key
    counts. For multiple-day activities the day and slot must both match. The
    exact slot vocabulary is tried first, then the looser token lookup.
    """
    registration = registration_of(participant)
    if isinstance(registration, Unrestricted):
        return True
    exact = slot_key_for(slot_name, loose=False)
    if exact is not None:
        return registration.allows(day, exact)
    return registration.allows(day, slot_key_for(slot_name, loose=True))
