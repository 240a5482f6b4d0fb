from datetime import date

import pytest

from teamplayer import crud
from teamplayer.exceptions import NotFoundError, ValidationError


def _add(db, owner_id, member_id, day, status="Free"):
    return crud.create_availability(db, owner_id, {"member_id": member_id, "date": day, "status": status})


def test_range_query_is_inclusive_and_scoped(db, user, member, other_user):
    other_member = crud.create_team_member(
        db, user.id, {"name": "Eli", "role": "QA", "email": "eli@example.com"}
    )
    foreign_member = crud.create_team_member(
        db, other_user.id, {"name": "Zed", "role": "QA", "email": "zed@example.com"}
    )
    _add(db, user.id, member.id, "2023-12-31")
    first = _add(db, user.id, member.id, "2024-01-01")
    mid = _add(db, user.id, member.id, "2024-01-15", status="Partial")
    last = _add(db, user.id, member.id, "2024-01-31")
    _add(db, user.id, member.id, "2024-02-01")
    _add(db, user.id, other_member.id, "2024-01-10")
    _add(db, other_user.id, foreign_member.id, "2024-01-10")

    found = crud.get_availability_by_member(db, user.id, member.id, "2024-01-01", "2024-01-31")
    assert sorted(e.id for e in found) == sorted([first.id, mid.id, last.id])

    assert crud.get_availability_by_member(db, other_user.id, member.id, "2024-01-01", "2024-01-31") == []


def test_range_query_accepts_dates(db, user, member):
    entry = _add(db, user.id, member.id, "2024-03-03")
    found = crud.get_availability_by_member(db, user.id, member.id, date(2024, 3, 3), date(2024, 3, 3))
    assert [e.id for e in found] == [entry.id]


def test_range_query_rejects_garbage(db, user, member):
    with pytest.raises(ValidationError):
        crud.get_availability_by_member(db, user.id, member.id, "soon", "2024-01-31")


def test_member_must_belong_to_owner(db, user, other_user, member):
    with pytest.raises(ValidationError):
        _add(db, other_user.id, member.id, "2024-01-01")
    with pytest.raises(ValidationError):
        _add(db, user.id, 999, "2024-01-01")


def test_update_and_delete_entry(db, user, member):
    entry = _add(db, user.id, member.id, "2024-01-01")
    updated = crud.update_availability(db, entry.id, {"status": "Occupied", "time_slots": ["09:00-12:00"]})
    assert updated.status == "Occupied"
    assert updated.time_slots == ["09:00-12:00"]
    assert crud.get_availability(db, entry.id, owner_id=user.id).id == entry.id

    crud.delete_availability(db, entry.id)
    assert crud.get_availability(db, entry.id) is None
    with pytest.raises(NotFoundError):
        crud.update_availability(db, entry.id, {"status": "Free"})


def test_deleting_member_removes_availability(db, user, member):
    entry = _add(db, user.id, member.id, "2024-01-01")
    crud.delete_team_member(db, member.id)
    assert crud.get_availability(db, entry.id) is None
