import pytest

from teamplayer import auth, crud
from teamplayer.exceptions import DuplicateEntityError, NotFoundError, ValidationError


def test_create_user_hashes_pin(db, user):
    assert user.id is not None
    assert user.is_active is True
    assert user.pin_hash != "1234"
    assert "1234" not in user.pin_hash
    assert auth.verify_pin("1234", user.pin_hash)


def test_duplicate_username_rejected(db, user):
    with pytest.raises(DuplicateEntityError):
        auth.create_user(db, "alice", "5555")


def test_duplicate_username_rejected_for_inactive_user(db, user):
    auth.delete_user(db, user.id)
    with pytest.raises(DuplicateEntityError):
        auth.create_user(db, "alice", "5555")


def test_create_user_requires_username(db):
    with pytest.raises(ValidationError):
        auth.create_user(db, "", "1234")


def test_login_success_sets_last_login(db, user):
    assert user.last_login is None
    logged_in = auth.login_user(db, "alice", "1234")
    assert logged_in is not None
    assert logged_in.id == user.id
    assert logged_in.last_login is not None


def test_login_wrong_pin_or_unknown_user(db, user):
    assert auth.login_user(db, "alice", "0000") is None
    assert auth.login_user(db, "nobody", "1234") is None


def test_deleted_user_cannot_log_in(db, user):
    deleted = auth.delete_user(db, user.id)
    assert deleted.is_active is False
    assert crud.get_user_by_id(db, user.id) is not None
    assert auth.login_user(db, "alice", "1234") is None


def test_delete_missing_user(db):
    with pytest.raises(NotFoundError):
        auth.delete_user(db, 999)


def test_reset_pin(db, user):
    assert auth.reset_pin(db, "alice", "rex", "4321") is None
    assert auth.reset_pin(db, "nobody", "Rex", "4321") is None

    before = user.updated_at
    reset = auth.reset_pin(db, "alice", "Rex", "4321")
    assert reset is not None
    assert reset.updated_at >= before
    assert auth.login_user(db, "alice", "1234") is None
    assert auth.login_user(db, "alice", "4321") is not None


def test_reset_pin_without_recovery_answer(db, other_user):
    assert auth.reset_pin(db, "bob", "", "0000") is None


def test_update_user_profile(db, user):
    updated = crud.update_user(db, user.id, {"profile_name": "Alice B.", "role": "Admin"})
    assert updated.profile_name == "Alice B."
    assert updated.role == "Admin"
    with pytest.raises(ValidationError):
        crud.update_user(db, user.id, {"role": "Overlord"})
    with pytest.raises(NotFoundError):
        crud.update_user(db, 999, {"profile_name": "x"})
