import pytest

from parkwise import slot_counter
from parkwise.errors import CapacityExceeded, CapacityOverflow, CapacityUnderflow, NotFound
from parkwise.slot_counter import SlotCounter, apply_delta


def test_decrement_and_increment():
    assert apply_delta(SlotCounter(available=5, total=10), -1) == SlotCounter(available=4, total=10)
    assert apply_delta(SlotCounter(available=5, total=10), +1) == SlotCounter(available=6, total=10)


def test_decrement_from_empty_lot():
    with pytest.raises(CapacityExceeded):
        apply_delta(SlotCounter(available=0, total=10), -1)


def test_decrement_below_zero_is_underflow():
    with pytest.raises(CapacityUnderflow):
        apply_delta(SlotCounter(available=1, total=10), -2)


def test_increment_past_total():
    full = SlotCounter(available=10, total=10)
    with pytest.raises(CapacityOverflow):
        apply_delta(full, +1)
    assert apply_delta(full, +1, clamp=True) == full


def test_clamp_never_applies_to_decrements():
    with pytest.raises(CapacityExceeded):
        apply_delta(SlotCounter(available=0, total=3), -1, clamp=True)


def test_broken_counter_is_rejected():
    with pytest.raises(CapacityOverflow):
        apply_delta(SlotCounter(available=11, total=10), 0)
    with pytest.raises(CapacityUnderflow):
        SlotCounter(available=-1, total=10).check()


def test_held():
    assert SlotCounter(available=3, total=10).held == 7


def test_adjust_available_in_storage(test_db_session, make_lot, lot_state):
    make_lot(total_slots=2)

    assert slot_counter.adjust_available(test_db_session, "lot-1", -1) == -1
    assert slot_counter.adjust_available(test_db_session, "lot-1", -1) == -1
    with pytest.raises(CapacityExceeded):
        slot_counter.adjust_available(test_db_session, "lot-1", -1)
    test_db_session.commit()
    assert lot_state()[0] == 0

    assert slot_counter.adjust_available(test_db_session, "lot-1", +1, clamp=True) == 1
    assert slot_counter.adjust_available(test_db_session, "lot-1", +1, clamp=True) == 1
    assert slot_counter.adjust_available(test_db_session, "lot-1", +1, clamp=True) == 0
    with pytest.raises(CapacityOverflow):
        slot_counter.adjust_available(test_db_session, "lot-1", +1)
    test_db_session.commit()
    assert lot_state()[0] == 2


def test_adjust_available_unknown_lot(test_db_session):
    with pytest.raises(NotFound):
        slot_counter.adjust_available(test_db_session, "missing", -1)


def test_resize_keeps_held_slots(test_db_session, make_lot, lot_state):
    make_lot(total_slots=10, available_slots=6)

    counter = slot_counter.resize(test_db_session, "lot-1", 20)
    assert counter == SlotCounter(available=16, total=20)

    counter = slot_counter.resize(test_db_session, "lot-1", 4)
    assert counter == SlotCounter(available=0, total=4)

    with pytest.raises(CapacityOverflow):
        slot_counter.resize(test_db_session, "lot-1", 3)
    test_db_session.commit()
    assert lot_state()[:2] == (0, 4)
