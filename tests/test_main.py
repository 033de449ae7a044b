"""Tests for development-API behaviour the client does not exercise directly."""

import pytest

import main
from database import db


def test_root_and_status(api):
    assert api.get("/").json() == {"message": "Codeabode API Running"}
    body = api.get("/test").json()
    assert body["database_name"] == db.name
    assert "account" in body["collections"]


def test_seed_is_idempotent(api):
    main.seed_data()
    assert db["account"].count_documents({}) == 2


def test_ids_are_sequential_per_collection(api):
    assert [a["id"] for a in db["account"].find({}).sort("id", 1)] == [1, 2]
    assert main.insert("account", {"username": "kay"})["id"] == 3
    assert main.insert("question", {"question": "?"})["id"] == 2


def test_timestamps_keep_millisecond_precision(api):
    assert main.now().microsecond % 1000 == 0
    assert main.now().tzinfo is None


def test_duplicate_account_rejected(api):
    with pytest.raises(ValueError):
        main.create_account("ada", "Someone Else", "pw")


def test_passwords_stored_as_digest(api):
    account = db["account"].find_one({"username": "ada"})
    assert account["password"] != "analytical"
    assert len(account["password"]) == 128


def test_errors_are_plain_text(api):
    res = api.post("/api/login", json={"username": "ada", "password": "nope"})
    assert res.status_code == 401
    assert res.headers["content-type"].startswith("text/plain")
    assert res.text == "Incorrect password"


def test_unknown_work_type_is_bad_request(api):
    api.post("/api/login", json={"username": "ada", "password": "analytical"})
    res = api.post("/api/submit/essay", json={"class_id": 101, "work": "x"})
    assert res.status_code == 400


def test_list_students_401_clears_cookies(api):
    api.post("/api/login", json={"username": "ada", "password": "analytical"})
    db["token"].delete_many({})
    res = api.post("/api/list_students")
    assert res.status_code == 401
    assert api.cookies.get("name") is None


def test_name_cookie_is_percent_encoded(api):
    res = api.post("/api/login", json={"username": "grace", "password": "cobol"})
    assert res.cookies.get("name") == "Grace%20Hopper"
