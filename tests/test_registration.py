import pytest

from registration import Restricted, Unrestricted, is_slot_registered, registration_of


@pytest.mark.parametrize("day, slot", [
    (None, "Buổi Sáng"),
    (1, "Buổi Chiều"),
    (7, "Buổi Tối"),
    (2, "Ca đặc biệt"),
])
def test_no_registration_means_everything(make_participant, day, slot):
    participant = make_participant(slots=None)
    assert is_slot_registered(participant, day, slot)


def test_empty_registration_list_is_legacy_default(make_participant):
    participant = make_participant(slots=[])
    assert registration_of(participant) == Unrestricted()
    assert is_slot_registered(participant, 3, "Buổi Tối")


def test_multi_day_registration_is_exact(make_participant):
    participant = make_participant(slots=[(1, "morning")])
    assert registration_of(participant) == Restricted(frozenset({(1, "morning")}))
    assert is_slot_registered(participant, 1, "Buổi Sáng")
    assert not is_slot_registered(participant, 2, "Buổi Sáng")
    assert not is_slot_registered(participant, 1, "Buổi Chiều")


def test_single_day_ignores_day(make_participant):
    participant = make_participant(slots=[(2, "morning")])
    assert is_slot_registered(participant, None, "Buổi Sáng")
    assert not is_slot_registered(participant, None, "Buổi Tối")


def test_loose_slot_names_fall_back_to_tokens(make_participant):
    participant = make_participant(slots=[(1, "morning"), (1, "evening")])
    assert is_slot_registered(participant, 1, "Buổi Sáng (07:00-11:30)")
    assert is_slot_registered(participant, 1, "Morning")
    assert is_slot_registered(participant, 1, "buổi tối")
    assert not is_slot_registered(participant, 2, "Morning")


def test_unresolvable_slot_name_is_not_registered(make_participant):
    participant = make_participant(slots=[(1, "morning")])
    assert not is_slot_registered(participant, 1, "Lunch")
    assert not is_slot_registered(participant, None, "")
