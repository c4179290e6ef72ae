import json
from datetime import date

import pytest
from sqlalchemy import text

from crud.admin_crud import get_credential
from models.article import Article, Song
from conftest import add_user, login


@pytest.fixture()
def admin_sid(client, db):
    add_user(db, "admin@x.com", admin=1)
    return login(client, "admin@x.com")["session"]


@pytest.fixture()
def user_sid(client, db):
    add_user(db, "member@x.com")
    return login(client, "member@x.com")["session"]


@pytest.fixture()
def songs(db):
    for i in range(1, 10):
        db.add(Song(id=i, name=f"Song {i}", link=f"https://example.org/{i}", role="choir", article="Easter"))
    db.commit()


def test_list_table(client, admin_sid, songs):
    r = client.post("/admin/tables/list", json={"session": admin_sid, "table": "songs"})
    data = r.json()
    assert data["success"] is True
    assert data["columns"] == ["id", "name", "link", "role", "article"]
    assert len(data["rows"]) == 9
    assert data["rows"][0] == ["1", "Song 1", "https://example.org/1", "choir", "Easter"]
    assert "int" in data["types"][0]


def test_list_table_encodes_dates(client, db, admin_sid):
    db.add(Article(id=1, title="Easter", text="Alleluia", expiry=date(2030, 4, 1)))
    db.commit()
    data = client.post("/admin/tables/list", json={"session": admin_sid, "table": "articles"}).json()
    assert data["rows"] == [["1", "Easter", "Alleluia", "2030-04-01"]]
    assert data["types"][3] == "date"


def test_list_table_with_unparsable_date(client, db, admin_sid):
    db.execute(text("INSERT INTO articles (id, title, text, expiry) VALUES (1, 'Easter', '', 'soon')"))
    db.commit()
    r = client.post("/admin/tables/list", json={"session": admin_sid, "table": "articles"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is False
    assert data["message"]


def test_list_empty_table(client, admin_sid):
    data = client.post("/admin/tables/list", json={"session": admin_sid, "table": "calendar"}).json()
    assert data["success"] is True
    assert data["rows"] == []


def test_unknown_table(client, admin_sid):
    data = client.post("/admin/tables/list", json={"session": admin_sid, "table": "nope"}).json()
    assert data["success"] is False


def test_list_titles(client, db, admin_sid):
    db.add_all([
        Article(id=1, title="Easter", text="", expiry=date(2030, 4, 1)),
        Article(id=2, title="Advent", text="", expiry=date(2030, 12, 1)),
    ])
    db.commit()
    data = client.post("/admin/tables/titles", json={"session": admin_sid, "table": "articles"}).json()
    assert data == {"success": True, "table": "articles", "titles": ["Easter", "Advent"]}


def test_add_row(client, admin_sid, songs):
    r = client.post(
        "/admin/rows/add",
        json={
            "session": admin_sid,
            "table": "songs",
            "names": json.dumps(["name", "link", "role", "article"]),
            "values": json.dumps(["Gloria", "https://example.org/g", "cantor", "Easter"]),
        },
    )
    data = r.json()
    assert data["success"] is True
    assert data["message"] == "Successfully added row 10."
    assert data["row"] == ["10", "Gloria", "https://example.org/g", "cantor", "Easter"]


def test_add_row_with_date_string(client, admin_sid):
    r = client.post(
        "/admin/rows/add",
        json={
            "session": admin_sid,
            "table": "calendar",
            "names": json.dumps(["title", "date", "start_time", "end_time", "notes"]),
            "values": json.dumps(["Rehearsal", "2030-05-06", "18:00", "19:30", ""]),
        },
    )
    data = r.json()
    assert data["success"] is True
    assert data["row"] == ["1", "Rehearsal", "2030-05-06", "18:00", "19:30", ""]


def test_add_row_storage_error_is_reported(client, admin_sid):
    r = client.post(
        "/admin/rows/add",
        json={
            "session": admin_sid,
            "table": "songs",
            "names": json.dumps(["name"]),
            "values": json.dumps([None]),
        },
    )
    data = r.json()
    assert data["success"] is False
    assert data["message"]


def test_change_row(client, db, admin_sid, songs):
    r = client.post(
        "/admin/rows/change",
        json={"session": admin_sid, "table": "songs", "id": "3", "name": "role", "value": "organ"},
    )
    assert r.json() == {"success": True, "message": "Successfully updated row 3."}
    db.expire_all()
    assert db.get(Song, 3).role == "organ"


def test_delete_row(client, db, admin_sid, songs):
    r = client.post("/admin/rows/delete", json={"session": admin_sid, "table": "songs", "id": "4"})
    assert r.json() == {"success": True, "message": "Successfully deleted row 4.", "id": 4}
    db.expire_all()
    assert db.get(Song, 4) is None


def test_move_to_end(client, db, admin_sid, songs):
    r = client.post("/admin/rows/move-to-end", json={"session": admin_sid, "table": "songs", "id": "5"})
    data = r.json()
    assert data["success"] is True
    assert data["old_id"] == 5
    assert data["row"] == ["10", "Song 5", "https://example.org/5", "choir", "Easter"]
    assert data["message"] == "Successfully moved row 5 to end."
    db.expire_all()
    assert db.get(Song, 5) is None
    assert db.get(Song, 10).name == "Song 5"


def test_move_to_start(client, db, admin_sid, songs):
    r = client.post("/admin/rows/move-to-start", json={"session": admin_sid, "table": "songs", "id": "5"})
    data = r.json()
    assert data["success"] is True
    assert data["old_id"] == 5
    assert data["row"][0] == "0"


def test_move_missing_row(client, admin_sid, songs):
    r = client.post("/admin/rows/move-to-end", json={"session": admin_sid, "table": "songs", "id": "99"})
    assert r.json()["success"] is False


@pytest.mark.parametrize(
    "path, body",
    [
        ("/admin/tables/list", {"table": "songs"}),
        ("/admin/tables/titles", {"table": "articles"}),
        ("/admin/rows/add", {"table": "songs", "names": '["name", "article"]', "values": '["x", "y"]'}),
        ("/admin/rows/change", {"table": "songs", "id": "1", "name": "name", "value": "x"}),
        ("/admin/rows/delete", {"table": "songs", "id": "1"}),
        ("/admin/rows/move-to-end", {"table": "songs", "id": "1"}),
        ("/admin/rows/move-to-start", {"table": "songs", "id": "1"}),
    ],
)
@pytest.mark.parametrize("who", ["member", "anonymous"])
def test_table_editor_requires_admin(client, user_sid, songs, write_counter, path, body, who):
    sid = user_sid if who == "member" else "not-a-session"
    write_counter["writes"] = 0
    r = client.post(path, json={"session": sid, **body})
    assert r.json() == {"success": False}
    assert write_counter["writes"] == 0


def test_gmail_authorization(client, db, admin_sid, user_sid, mailer):
    assert client.post("/admin/gmail/auth-url", json={"session": user_sid}).json() == {"url": ""}
    url = client.post("/admin/gmail/auth-url", json={"session": admin_sid}).json()["url"]
    assert url.startswith("https://accounts.example/auth")

    r = client.post("/admin/gmail/code", json={"session": admin_sid, "code": "abc"})
    assert r.json() == {"success": True}
    assert get_credential(db, "admin@x.com").refresh_token == "refresh-abc"

    client.post("/admin/gmail/code", json={"session": admin_sid, "code": "def"})
    db.expire_all()
    assert get_credential(db, "admin@x.com").refresh_token == "refresh-def"

    assert client.post("/admin/gmail/code", json={"session": user_sid, "code": "zzz"}).json() == {"success": False}
    assert mailer.exchanged == ["abc", "def"]


def test_broadcast_email(client, db, admin_sid, mailer, sender):
    add_user(db, "subscribed@x.com", subscription_policy=1)
    add_user(db, "unsubscribed@x.com", subscription_policy=0)
    add_user(db, "bounced@x.com", subscription_policy=2, invalid_email=1)

    r = client.post(
        "/admin/email/send",
        json={"session": admin_sid, "recipients": "all_users", "subject": "News", "body": "Hello"},
    )
    assert r.json() == {"success": True}
    recipients = {m["to"] for m in mailer.sent}
    assert recipients == {"admin@x.com", "subscribed@x.com"}


def test_single_recipient_email(client, admin_sid, mailer, sender):
    r = client.post(
        "/admin/email/send",
        json={"session": admin_sid, "recipient": "one@x.com", "subject": "Hi", "body": "Hello"},
    )
    assert r.json() == {"success": True}
    assert [m["to"] for m in mailer.sent] == ["one@x.com"]


def test_email_requires_authorized_sender(client, admin_sid, mailer):
    r = client.post(
        "/admin/email/send",
        json={"session": admin_sid, "recipient": "one@x.com", "subject": "Hi", "body": "Hello"},
    )
    assert r.json()["success"] is False
    assert mailer.sent == []
