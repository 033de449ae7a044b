"""Tests for PlatformClient against the development API."""

from datetime import datetime

import httpx
import pytest

from client import ApiError, NetworkError, NotFoundError, PlatformClient, ResponseError, UnauthorizedError
from database import db
from schemas import ProjectStatus, WorkType


def login(client):
    client.login("ada", "analytical")


class TestAccounts:
    def test_login_sets_cookies(self, client):
        assert client.login("ada", "analytical") == "Login successful"
        assert client.http.cookies.get("name") == "Ada%20Lovelace"
        assert client.http.cookies.get("token")

    def test_reset_password_expires_tokens(self, client):
        login(client)
        message = client.reset_password("ada", "analytical", "engine")
        assert message.startswith("Password reset successfully: 1 tokens cleared")
        assert client.http.cookies.get("name") is None
        with pytest.raises(UnauthorizedError):
            client.list_students()
        client.login("ada", "engine")
        assert [s.name for s in client.list_students()] == ["Alan", "Barbara"]

    def test_reset_password_wrong_current(self, client):
        with pytest.raises(UnauthorizedError, match="Incorrect password"):
            client.reset_password("ada", "nope", "engine")


class TestStudents:
    def test_list_requires_session(self, client):
        with pytest.raises(UnauthorizedError):
            client.list_students()

    def test_list_only_own_students(self, client):
        client.login("grace", "cobol")
        assert [s.name for s in client.list_students()] == ["Barbara"]

    def test_get_student_full_record(self, client):
        login(client)
        student = client.get_student(1)
        assert student.name == "Alan"
        assert [c.class_id for c in student.classes] == [104, 103, 102, 101]
        assert student.find_class(101).classwork_submission == "name = 'Zed'\nhp = 10"
        assert student.future_concepts[0] == "lists"

    def test_get_student_without_session_is_not_found(self, client):
        with pytest.raises(NotFoundError):
            client.get_student(1)

    def test_get_foreign_student_is_not_found(self, client):
        client.login("grace", "cobol")
        with pytest.raises(NotFoundError):
            client.get_student(1)

    def test_submit_work(self, client):
        login(client)
        client.submit_work(WorkType.HOMEWORK, 103, "for i in range(3): print(i)")
        assert client.get_student(1).find_class(103).homework_submission == "for i in range(3): print(i)"

    def test_submit_work_unknown_class(self, client):
        login(client)
        with pytest.raises(NotFoundError, match="Class not found"):
            client.submit_work(WorkType.CLASSWORK, 999, "x")


class TestForum:
    def test_questions_with_comments(self, client):
        login(client)
        questions = client.get_questions()
        assert len(questions) == 1
        assert questions[0].student_name == "Alan"
        assert questions[0].comments[0].account_name == "Grace Hopper"

    def test_ask_snapshots_submission(self, client):
        login(client)
        client.ask(101, WorkType.CLASSWORK, "What is a str?", interpretation="text")
        newest = client.get_questions()[0]
        assert newest.question == "What is a str?"
        assert newest.work == "name = 'Zed'\nhp = 10"
        assert newest.error is None

    def test_comment_returns_timestamp(self, client):
        login(client)
        created = client.comment(1, "Thanks!")
        assert isinstance(created, str)
        stored = client.get_questions()[0].comments[-1]
        assert stored.created_at == datetime.fromisoformat(created)
        assert stored.id > 0

    def test_empty_comment_rejected_verbatim(self, client):
        login(client)
        with pytest.raises(ApiError) as info:
            client.comment(1, "   ")
        assert info.value.status_code == 400
        assert str(info.value) == "Comment cannot be empty"


class TestProjects:
    def test_list_projects_is_public(self, client):
        projects = client.list_projects()
        assert {p.title for p in projects} == {"Zed's Quest", "Door Puzzle"}
        ready = [p for p in projects if p.is_ready]
        assert ready[0].url == "/play/1/index.html"

    def test_submit_project_returns_pending_record(self, client):
        login(client)
        project = client.submit_project(103, WorkType.CLASSWORK, "Wave Runner", "Dodge the waves.")
        assert project.status is ProjectStatus.PENDING
        assert project.title == "Wave Runner"
        assert project.id == db["project"].find_one({"title": "Wave Runner"})["id"]

    def test_record_view_increments(self, client):
        assert client.record_view(1) is True
        assert db["project"].find_one({"id": 1})["views"] == 4

    def test_record_view_failure_is_reported_not_raised(self, client):
        assert client.record_view(999) is False


class TestTransport:
    def test_transport_error_becomes_network_error(self, offline_client):
        with pytest.raises(NetworkError):
            offline_client.list_projects()

    def test_record_view_offline(self, offline_client):
        assert offline_client.record_view(1) is False

    def test_other_status_keeps_body(self):
        def handler(request):
            return httpx.Response(503, text="down for maintenance")

        client = PlatformClient(httpx.Client(base_url="http://codeabode.test", transport=httpx.MockTransport(handler)))
        with pytest.raises(ApiError) as info:
            client.get_questions()
        assert info.value.status_code == 503
        assert not isinstance(info.value, (UnauthorizedError, NotFoundError))
        assert str(info.value) == "down for maintenance"


def mock_client(handler):
    return PlatformClient(httpx.Client(base_url="http://codeabode.test", transport=httpx.MockTransport(handler)))


class TestUnexpectedBodies:
    def test_html_instead_of_json(self):
        client = mock_client(lambda request: httpx.Response(200, text="<html>proxy page</html>"))
        with pytest.raises(ResponseError) as info:
            client.get_student(1)
        assert info.value.status_code == 200
        assert isinstance(info.value, ApiError)

    def test_json_of_the_wrong_shape(self):
        client = mock_client(lambda request: httpx.Response(200, json={"students": []}))
        with pytest.raises(ResponseError):
            client.list_students()

    def test_submit_project_non_object(self):
        client = mock_client(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(ResponseError):
            client.submit_project(101, WorkType.CLASSWORK, "Title", "Description")

    def test_comment_timestamp_returned_as_sent(self):
        client = mock_client(lambda request: httpx.Response(200, text="2026-10-19 12:00:00.123456789 UTC"))
        assert client.comment(1, "hi") == "2026-10-19 12:00:00.123456789 UTC"
