from datetime import datetime

import pytest

from slotbook.core.exceptions import NotFoundException, ValidationException
from slotbook.core.timeutils import time_to_minutes
from slotbook.services.availability_service import (
    ERROR_ALREADY_BOOKED,
    ERROR_DATE_UNAVAILABLE,
    ERROR_LINK_INACTIVE,
    ERROR_NOT_IN_SCHEDULE,
    ERROR_PAST_DATE,
    SLOT_DURATION_MINUTES,
    advance_notice_error,
    apply_advance_booking_filter,
    generate_time_slots,
    get_available_time_slots,
    get_day_availability,
    get_month_availability,
    validate_booking_slot,
)
from tests.factories import MONDAY_8AM, make_booking, make_link, make_template

MONDAY = "2025-01-06"
TUESDAY = "2025-01-07"


def _times(slots):
    return [(s.start_time, s.end_time) for s in slots]


# --- pure slot generation ---


def test_generate_slots_for_one_hour_range():
    slots = generate_time_slots(make_template(), MONDAY)
    assert _times(slots) == [("09:00", "09:30"), ("09:30", "10:00")]
    assert [s.id for s in slots] == ["TS_2025-01-06_0900", "TS_2025-01-06_0930"]


def test_generated_slots_are_thirty_minutes_and_stay_inside_range():
    template = make_template(
        schedule={
            "monday": [
                {"start_time": "08:15", "end_time": "09:50"},
                {"start_time": "13:00", "end_time": "13:45"},
            ]
        }
    )
    slots = generate_time_slots(template, MONDAY)
    assert _times(slots) == [("08:15", "08:45"), ("08:45", "09:15"), ("09:15", "09:45"), ("13:00", "13:30")]
    for s in slots:
        assert time_to_minutes(s.end_time) - time_to_minutes(s.start_time) == SLOT_DURATION_MINUTES


def test_generation_is_deterministic():
    template = make_template()
    assert generate_time_slots(template, MONDAY) == generate_time_slots(template, MONDAY)


def test_day_without_ranges_has_no_slots():
    assert generate_time_slots(make_template(), "2025-01-08") == []


def test_advance_filter_disabled_keeps_every_slot():
    slots = generate_time_slots(make_template(), MONDAY)
    assert apply_advance_booking_filter(slots, MONDAY, False, 48, MONDAY_8AM) == slots


def test_advance_filter_24_hours():
    monday = generate_time_slots(make_template(), MONDAY)
    tuesday = generate_time_slots(make_template(), TUESDAY)
    assert apply_advance_booking_filter(monday, MONDAY, True, 24, MONDAY_8AM) == []
    # Tuesday 09:00 is 25 hours after Monday 08:00
    assert _times(apply_advance_booking_filter(tuesday, TUESDAY, True, 24, MONDAY_8AM)) == [
        ("09:00", "09:30"),
        ("09:30", "10:00"),
    ]


# --- day availability ---


def test_cutoff_day_itself_is_bookable():
    template = make_template(
        schedule={"friday": [{"start_time": "09:00", "end_time": "10:00"}]},
        booking_cutoff_date="2025-01-10",
    )
    day = get_day_availability(template, make_link(), "2025-01-10", [], MONDAY_8AM)
    assert day.available is True
    assert day.total_slots == 2


def test_date_after_cutoff_is_unavailable():
    template = make_template(
        schedule={"saturday": [{"start_time": "09:00", "end_time": "10:00"}]},
        booking_cutoff_date="2025-01-10",
    )
    day = get_day_availability(template, make_link(), "2025-01-11", [], MONDAY_8AM)
    assert (day.available, day.total_slots, day.available_slots) == (False, 0, 0)


def test_blackout_day_is_unavailable():
    template = make_template(blackout_days=[MONDAY])
    day = get_day_availability(template, make_link(), MONDAY, [], MONDAY_8AM)
    assert (day.available, day.total_slots, day.available_slots) == (False, 0, 0)


def test_past_day_is_unavailable():
    day = get_day_availability(make_template(), make_link(), "2024-12-30", [], MONDAY_8AM)
    assert day.available is False


def test_total_slots_counts_capacity_before_filters():
    link = make_link(require_advance_booking=True, advance_hours=24)
    bookings = [make_booking(selected_time="09:00")]
    day = get_day_availability(make_template(), link, MONDAY, bookings, MONDAY_8AM)
    assert day.total_slots == 2
    assert day.available_slots == 0
    assert day.available is False


# --- store backed ---


@pytest.mark.asyncio
async def test_available_slots_without_bookings(seeded_store):
    slots = await get_available_time_slots(seeded_store, "BL_1", MONDAY, now=MONDAY_8AM)
    assert _times(slots) == [("09:00", "09:30"), ("09:30", "10:00")]


@pytest.mark.asyncio
async def test_booked_slot_is_removed(seeded_store):
    await seeded_store.insert_booking_if_slot_free(make_booking(selected_time="09:00"))
    slots = await get_available_time_slots(seeded_store, "BL_1", MONDAY, now=MONDAY_8AM)
    assert _times(slots) == [("09:30", "10:00")]


@pytest.mark.asyncio
async def test_cancelled_booking_frees_slot(seeded_store):
    await seeded_store.insert_booking_if_slot_free(make_booking(status="cancelled"))
    slots = await get_available_time_slots(seeded_store, "BL_1", MONDAY, now=MONDAY_8AM)
    assert len(slots) == 2


@pytest.mark.asyncio
async def test_advance_notice_applies_to_day_slots(store):
    await store.save_template(make_template())
    await store.save_booking_link(make_link(require_advance_booking=True, advance_hours=24))
    assert await get_available_time_slots(store, "BL_1", MONDAY, now=MONDAY_8AM) == []
    assert len(await get_available_time_slots(store, "BL_1", TUESDAY, now=MONDAY_8AM)) == 2


@pytest.mark.asyncio
async def test_dangling_template_is_not_found(store):
    await store.save_booking_link(make_link(template_id="TPL_missing"))
    with pytest.raises(NotFoundException):
        await get_available_time_slots(store, "BL_1", MONDAY, now=MONDAY_8AM)


@pytest.mark.asyncio
async def test_invalid_date_is_rejected(seeded_store):
    with pytest.raises(ValidationException):
        await get_available_time_slots(seeded_store, "BL_1", "2025-1-6", now=MONDAY_8AM)


@pytest.mark.asyncio
async def test_month_availability(seeded_store):
    await seeded_store.insert_booking_if_slot_free(make_booking(selected_date="2025-01-13", selected_time="09:00"))
    days = await get_month_availability(seeded_store, "BL_1", 2025, 1, now=MONDAY_8AM)
    assert len(days) == 31
    assert [d.date for d in days][:2] == ["2025-01-01", "2025-01-02"]
    by_date = {d.date: d for d in days}
    assert by_date["2025-01-05"].available is False  # past
    assert by_date["2025-01-06"].available_slots == 2
    assert by_date["2025-01-08"].available is False  # no ranges on Wednesday
    assert (by_date["2025-01-13"].total_slots, by_date["2025-01-13"].available_slots) == (2, 1)


@pytest.mark.asyncio
async def test_month_out_of_range(seeded_store):
    with pytest.raises(ValidationException):
        await get_month_availability(seeded_store, "BL_1", 2025, 13, now=MONDAY_8AM)


# --- validator ---


@pytest.mark.asyncio
async def test_validate_accepts_open_slot(seeded_store):
    result = await validate_booking_slot(seeded_store, "BL_1", MONDAY, "09:30", now=MONDAY_8AM)
    assert result.valid is True
    assert result.booking_link.id == "BL_1"
    assert result.template.id == "TPL_1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "selected_date,selected_time,error",
    [
        ("06/01/2025", "09:00", "Invalid date format. Use YYYY-MM-DD"),
        (MONDAY, "9:00", "Invalid time format. Use HH:MM"),
        ("2024-12-30", "09:00", ERROR_PAST_DATE),
        (MONDAY, "10:00", ERROR_NOT_IN_SCHEDULE),
    ],
)
async def test_validate_rejections(seeded_store, selected_date, selected_time, error):
    result = await validate_booking_slot(seeded_store, "BL_1", selected_date, selected_time, now=MONDAY_8AM)
    assert result.valid is False
    assert result.error == error


@pytest.mark.asyncio
async def test_validate_rejects_unknown_link(seeded_store):
    result = await validate_booking_slot(seeded_store, "BL_nope", MONDAY, "09:00", now=MONDAY_8AM)
    assert (result.valid, result.error) == (False, "Booking link not found")


@pytest.mark.asyncio
async def test_validate_rejects_inactive_link(store):
    await store.save_template(make_template())
    await store.save_booking_link(make_link(is_active=False))
    result = await validate_booking_slot(store, "BL_1", MONDAY, "09:00", now=MONDAY_8AM)
    assert result.error == ERROR_LINK_INACTIVE


@pytest.mark.asyncio
async def test_validate_rejects_blackout(store):
    await store.save_template(make_template(blackout_days=[MONDAY]))
    await store.save_booking_link(make_link())
    result = await validate_booking_slot(store, "BL_1", MONDAY, "09:00", now=MONDAY_8AM)
    assert result.error == ERROR_DATE_UNAVAILABLE


@pytest.mark.asyncio
async def test_validate_rejects_booked_slot(seeded_store):
    await seeded_store.insert_booking_if_slot_free(make_booking())
    result = await validate_booking_slot(seeded_store, "BL_1", MONDAY, "09:00", now=MONDAY_8AM)
    assert result.error == ERROR_ALREADY_BOOKED


@pytest.mark.asyncio
async def test_validate_rejects_short_notice(store):
    await store.save_template(make_template())
    await store.save_booking_link(make_link(require_advance_booking=True, advance_hours=6))
    result = await validate_booking_slot(store, "BL_1", MONDAY, "09:30", now=datetime(2025, 1, 6, 4, 0))
    assert result.error == advance_notice_error(6)
    ok = await validate_booking_slot(store, "BL_1", MONDAY, "09:30", now=datetime(2025, 1, 6, 3, 30))
    assert ok.valid is True
