import pytest

from core.security import password_matches
from core.session_store import SessionKey
from crud.user_crud import get_user_by_email
from conftest import add_user, login


def test_signup_normalizes_email_and_is_unverified(client, db, store):
    r = client.post("/auth/signup", json={"email": "A@X.com"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["verified"] is False

    user = get_user_by_email(db, "a@x.com")
    assert user is not None
    assert user.verified == 0 and user.admin == 0
    assert user.subscription_policy == 1

    session = store.lookup(data["session"])
    assert session.get(SessionKey.NOT_VERIFIED_EMAIL) == "a@x.com"
    assert session.get(SessionKey.VERIFIED) == "0"


def test_signup_with_password(client, db):
    r = client.post(
        "/auth/signup",
        json={"email": "b@x.com", "password1": "long enough", "password2": "long enough"},
    )
    assert r.json()["success"] is True
    assert password_matches("long enough", get_user_by_email(db, "b@x.com").password)


def test_signup_rejects_bad_input_before_insert(client, db, write_counter):
    add_user(db, "taken@x.com")
    write_counter["writes"] = 0

    r = client.post("/auth/signup", json={"email": "Taken@x.com"})
    assert r.json() == {"success": False, "message": "This email address is already registered."}
    r = client.post("/auth/signup", json={"email": "not-an-email"})
    assert r.json()["message"] == "Please enter a valid email address."
    r = client.post("/auth/signup", json={"email": "c@x.com", "password1": "long enough", "password2": "different!"})
    assert r.json()["message"] == "The passwords do not match."
    assert write_counter["writes"] == 0


def test_login_verified_account(client, db, store):
    add_user(db, "v@x.com", admin=1, subscription_policy=2)
    data = login(client, "v@x.com")
    assert data["success"] is True
    assert data["verified"] is True

    session = store.lookup(data["session"])
    assert session.email == "v@x.com"
    assert session.is_admin
    assert session.subscription_policy == 2


def test_login_wrong_password(client, db, store):
    add_user(db, "v@x.com")
    data = login(client, "v@x.com", "wrong")
    assert data == {"success": False, "message": "Wrong password, please try again."}
    sessions = [store.lookup(sid) for sid in list(store._sessions)]
    assert len(sessions) == 1
    assert sessions[0].snapshot() == {}


def test_login_unregistered_email(client):
    data = login(client, "nobody@x.com", "whatever")
    assert data["message"] == "This email address is not registered. Please create a new account."


def test_login_is_case_insensitive(client, db):
    add_user(db, "v@x.com")
    assert login(client, "V@X.COM")["verified"] is True


def test_logout_deletes_session(client, db, store):
    add_user(db, "v@x.com")
    sid = login(client, "v@x.com")["session"]
    assert client.post("/auth/logout", json={"session": sid}).json() == {}
    assert store.lookup(sid) is None
    # Unknown sessions are not an error
    assert client.post("/auth/logout", json={"session": sid}).status_code == 200


def test_refresh_picks_up_database_changes(client, db, store):
    user = add_user(db, "v@x.com")
    sid = login(client, "v@x.com")["session"]
    user.admin = 1
    db.commit()

    client.post("/auth/refresh", json={"session": sid})
    assert store.lookup(sid).is_admin


def test_refresh_for_deleted_account_ends_session(client, db, store):
    user = add_user(db, "v@x.com")
    sid = login(client, "v@x.com")["session"]
    db.delete(user)
    db.commit()

    client.post("/auth/refresh", json={"session": sid})
    assert store.lookup(sid) is None


def test_session_expires_after_ttl(client, db, store, clock):
    add_user(db, "v@x.com")
    sid = login(client, "v@x.com")["session"]
    clock.advance(30 * 60 - 1)
    r = client.post("/account/details", json={"session": sid, "details": "email"})
    assert r.json() == {"email": "v@x.com"}
    clock.advance(1)
    r = client.post("/account/details", json={"session": sid, "details": "email"})
    assert r.json() == {"session": "none"}


@pytest.mark.parametrize("email", ["a@x..com", "a@.x.com", "<a>@x.com", "a@x.com.", "a b@x.com", "@x.com"])
def test_signup_rejects_malformed_email(client, db, store, email):
    data = client.post("/auth/signup", json={"email": email}).json()
    assert data == {"success": False, "message": "Please enter a valid email address."}
    assert len(store) == 0
    assert get_user_by_email(db, email.lower()) is None


def test_signup_loses_race_for_address(client, db, store, monkeypatch):
    def check_then_register_elsewhere(request_db, email):
        add_user(db, email)
        return None

    monkeypatch.setattr("routers.auth_router.check_email", check_then_register_elsewhere)
    r = client.post("/auth/signup", json={"email": "race@x.com"})
    assert r.status_code == 200
    assert r.json() == {"success": False, "message": "This email address is already registered."}
    assert len(store) == 0
    db.expire_all()
    assert get_user_by_email(db, "race@x.com").password != ""
