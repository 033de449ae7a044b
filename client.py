"""
HTTP client for the Codeabode platform API.

One method per endpoint. Every method either returns validated schema objects or raises
a PlatformError subclass; nothing here retries or swallows failures, with the single
exception of record_view, which is fire-and-forget.
"""
import logging
from typing import Any, Callable, List, Optional, TypeVar

import httpx
from pydantic import TypeAdapter

from schemas import (
    AskIn,
    CommentIn,
    LoginIn,
    Project,
    ProjectIn,
    ProjectStatus,
    Question,
    ResetPasswordIn,
    Student,
    StudentInfo,
    WorkIn,
    WorkType,
)

logger = logging.getLogger(__name__)

_students_adapter = TypeAdapter(List[StudentInfo])
_questions_adapter = TypeAdapter(List[Question])
_projects_adapter = TypeAdapter(List[Project])

T = TypeVar("T")


# -----------------
# Errors
# -----------------

class PlatformError(Exception):
    """Base class for everything the client raises."""


class NetworkError(PlatformError):
    """The request never produced an HTTP response."""


class ApiError(PlatformError):
    """Non-2xx response. The message is the server's body, verbatim."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class UnauthorizedError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ResponseError(ApiError):
    """A 2xx response whose body is not the JSON record the endpoint promises."""


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    detail = response.text
    if response.status_code == 401:
        raise UnauthorizedError(401, detail)
    if response.status_code == 404:
        raise NotFoundError(404, detail)
    raise ApiError(response.status_code, detail)


def _parse(response: httpx.Response, validate: Callable[[Any], T]) -> T:
    try:
        return validate(response.json())
    except (ValueError, TypeError) as exc:
        # JSONDecodeError and pydantic ValidationError are both ValueErrors
        logger.error("%s %s: unexpected response body: %s", response.request.method, response.url.path, exc)
        raise ResponseError(response.status_code, "Unexpected response from server") from exc


class PlatformClient:
    """Thin wrapper over an httpx.Client whose cookie jar carries the session."""

    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    @classmethod
    def connect(cls, api_url: str, timeout: Optional[float] = None) -> "PlatformClient":
        return cls(httpx.Client(base_url=api_url, timeout=timeout))

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, body=None) -> httpx.Response:
        kwargs = {}
        if body is not None:
            kwargs["json"] = body.model_dump(mode="json")
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"Network error: {exc}") from exc
        logger.debug("%s %s -> %d", method, path, response.status_code)
        _raise_for_status(response)
        return response

    # -----------------
    # Accounts
    # -----------------

    def login(self, username: str, password: str) -> str:
        res = self._request("POST", "/api/login", LoginIn(username=username, password=password))
        return res.text

    def reset_password(self, username: str, password: str, new_password: str) -> str:
        body = ResetPasswordIn(username=username, password=password, new_password=new_password)
        return self._request("POST", "/api/reset-password", body).text

    # -----------------
    # Students and work
    # -----------------

    def list_students(self) -> List[StudentInfo]:
        res = self._request("POST", "/api/list_students")
        return _parse(res, _students_adapter.validate_python)

    def get_student(self, student_id: int) -> Student:
        res = self._request("POST", f"/api/get_student/{student_id}")
        return _parse(res, Student.model_validate)

    def submit_work(self, work_type: WorkType, class_id: int, work: str) -> None:
        work_type = WorkType(work_type)
        self._request("POST", f"/api/submit/{work_type.value}", WorkIn(class_id=class_id, work=work))

    # -----------------
    # Forum
    # -----------------

    def get_questions(self) -> List[Question]:
        res = self._request("GET", "/api/get_questions")
        return _parse(res, _questions_adapter.validate_python)

    def ask(
        self,
        class_id: int,
        work_type: WorkType,
        question: str,
        error: str = "",
        interpretation: str = "",
    ) -> None:
        body = AskIn(
            class_id=class_id,
            work_type=work_type,
            error=error,
            interpretation=interpretation,
            question=question,
        )
        self._request("POST", "/api/ask", body)

    def comment(self, question_id: int, comment: str) -> str:
        """Post a comment. The server answers with only the creation timestamp, returned as sent."""
        res = self._request("POST", "/api/comment", CommentIn(question_id=question_id, comment=comment))
        return res.text.strip().strip('"')

    # -----------------
    # Projects
    # -----------------

    def list_projects(self) -> List[Project]:
        res = self._request("GET", "/api/projects")
        return _parse(res, _projects_adapter.validate_python)

    def submit_project(
        self,
        class_id: int,
        work_type: WorkType,
        title: str,
        description: str,
        deploy_method: str = "pygbag",
    ) -> Project:
        body = ProjectIn(
            class_id=class_id,
            work_type=work_type,
            title=title,
            description=description,
            deploy_method=deploy_method,
        )
        res = self._request("POST", "/api/submit_project", body)

        def merge(data) -> Project:
            record = {"title": title, "description": description, "status": ProjectStatus.PENDING}
            record.update(data)
            return Project.model_validate(record)

        return _parse(res, merge)

    def record_view(self, project_id: int) -> bool:
        try:
            self._request("POST", f"/api/projects/{project_id}/view")
        except PlatformError as exc:
            logger.warning("View count for project %d not recorded: %s", project_id, exc)
            return False
        return True
