from datetime import timedelta
from types import SimpleNamespace

import pytest
from sqlmodel import select

from blog_api.backend.core.clock import utcnow
from blog_api.backend.core.errors import (
    InvalidRefreshToken,
    RefreshTokenExpired,
    TokenReuseDetected,
)
from blog_api.backend.models.refresh_token import RefreshToken
from blog_api.backend.schemas.auth import ClientMetadata
from blog_api.backend.services.rotation import RotationEngine


def _rows(db):
    return db.exec(select(RefreshToken)).all()


def test_rotate_consumes_token_and_keeps_family(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    t1 = engine.issue_initial(user.user_id)
    family = engine.store.find_by_value(t1).family

    result = engine.rotate(t1, ClientMetadata("192.0.2.7", "ua/2"))

    assert result.token != t1
    assert result.user_id == user.user_id
    assert result.user.email == user.email
    old = engine.store.find_by_value(t1)
    new = engine.store.find_by_value(result.token)
    assert old.used is True and old.used_at is not None
    assert new.used is False
    assert new.family == family
    assert new.ip_address == "192.0.2.7"


def test_each_login_starts_its_own_family(db, make_user):
    user = make_user()
    engine = RotationEngine(db)

    a = engine.store.find_by_value(engine.issue_initial(user.user_id))
    b = engine.store.find_by_value(engine.issue_initial(user.user_id))

    assert a.family != b.family


def test_unknown_token_is_rejected_without_side_effects(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    engine.issue_initial(user.user_id)

    with pytest.raises(InvalidRefreshToken):
        engine.rotate("f" * 80)

    assert len(_rows(db)) == 1


def test_reuse_revokes_whole_family(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    t1 = engine.issue_initial(user.user_id)
    t2 = engine.rotate(t1).token

    with pytest.raises(TokenReuseDetected):
        engine.rotate(t1)

    with pytest.raises(InvalidRefreshToken):
        engine.rotate(t2)
    assert _rows(db) == []


def test_reuse_leaves_other_families_alone(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    t1 = engine.issue_initial(user.user_id)
    other = engine.issue_initial(user.user_id)
    engine.rotate(t1)

    with pytest.raises(TokenReuseDetected):
        engine.rotate(t1)

    assert engine.rotate(other).token


def test_chain_of_rotations_then_replay_of_any_ancestor(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    chain = [engine.issue_initial(user.user_id)]
    for _ in range(3):
        chain.append(engine.rotate(chain[-1]).token)

    with pytest.raises(TokenReuseDetected):
        engine.rotate(chain[1])

    with pytest.raises(InvalidRefreshToken):
        engine.rotate(chain[-1])


def test_expired_token_is_deleted_and_rejected(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    stale = engine.store.insert(user.user_id, expires_at=utcnow() - timedelta(seconds=1))
    db.commit()

    with pytest.raises(RefreshTokenExpired):
        engine.rotate(stale)

    assert engine.store.find_by_value(stale) is None
    with pytest.raises(InvalidRefreshToken):
        engine.rotate(stale)


def test_losing_the_mark_used_race_counts_as_reuse(db, make_user, monkeypatch):
    user = make_user()
    engine = RotationEngine(db)
    t1 = engine.issue_initial(user.user_id)
    record = engine.store.find_by_value(t1)
    # What a second request saw before the first one committed its rotation.
    snapshot = SimpleNamespace(
        id=record.id,
        user_id=record.user_id,
        family=record.family,
        used=False,
        expires_at=record.expires_at,
    )
    winner = engine.rotate(t1).token

    monkeypatch.setattr(engine.store, "find_by_value", lambda value: snapshot)
    with pytest.raises(TokenReuseDetected):
        engine.rotate(t1)
    monkeypatch.undo()

    with pytest.raises(InvalidRefreshToken):
        engine.rotate(winner)


def test_token_of_deleted_user_revokes_family(db, make_user):
    user = make_user()
    engine = RotationEngine(db)
    t1 = engine.issue_initial(user.user_id)
    db.delete(user)
    db.commit()

    with pytest.raises(InvalidRefreshToken):
        engine.rotate(t1)

    assert _rows(db) == []


def test_reuse_by_one_user_leaves_other_user_untouched(db, make_user):
    alice = make_user()
    bob = make_user("bob@example.com")
    engine = RotationEngine(db)
    alice_t1 = engine.issue_initial(alice.user_id)
    bob_t1 = engine.issue_initial(bob.user_id)
    engine.rotate(alice_t1)

    with pytest.raises(TokenReuseDetected):
        engine.rotate(alice_t1)

    rotated = engine.rotate(bob_t1)
    assert rotated.user_id == bob.user_id
    assert engine.store.find_by_value(rotated.token).user_id == bob.user_id
