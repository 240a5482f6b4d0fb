import pytest
from sqlalchemy.pool import StaticPool

from teamplayer import auth, crud
from teamplayer.database import create_db_engine, create_session_factory, init_db, session_scope


@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool, echo=False)
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db(engine):
    factory = create_session_factory(engine)
    with session_scope(factory) as session:
        yield session


@pytest.fixture()
def user(db):
    return auth.create_user(db, "alice", "1234", profile_name="Alice", recovery_answer="Rex")


@pytest.fixture()
def other_user(db):
    return auth.create_user(db, "bob", "9999")


@pytest.fixture()
def member(db, user):
    return crud.create_team_member(
        db, user.id, {"name": "Dana", "role": "Developer", "email": "dana@example.com"}
    )


@pytest.fixture()
def project(db, user):
    return crud.create_project(db, user.id, {"name": "Apollo", "description": "Moon shot"})
