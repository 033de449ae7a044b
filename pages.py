"""
Page controllers: the view-layer side of each screen, without the markup.

Each controller owns its own loading flag and status line, sets the navigation
parent on mount and clears it on unmount. Every action ends in a terminal,
user-visible status string; nothing retries on its own. 401 and 404 from
student endpoints are treated as a stale session and trigger a session resync.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from client import ApiError, NetworkError, NotFoundError, UnauthorizedError
from context import AppContext
from forum import ForumBoard
from progress import ProgressSummary
from schemas import Project, ProjectStatus, Question, Student, StudentInfo, WorkType

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error"
SESSION_EXPIRED = "Session expired. Please log in again."


class Page:
    parent_path: Optional[str] = None

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.status = ""
        self.loading = False

    def mount(self) -> "Page":
        self.ctx.navigation.set_parent_path(self.parent_path)
        return self

    def unmount(self) -> None:
        self.ctx.navigation.set_parent_path(None)

    def __enter__(self):
        return self.mount()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def _resync_session(self, exc: ApiError) -> None:
        logger.warning("%s: %d from server, resyncing session", type(self).__name__, exc.status_code)
        self.ctx.session.refresh()


def _work_parent(class_id: Optional[int], type_code: Optional[str], student_id: Optional[int]) -> str:
    if class_id is not None and type_code:
        return f"/work?c={class_id}&t={type_code}&s={student_id}"
    return "/"


# -----------------
# Accounts
# -----------------

class LoginForm(Page):
    def submit(self, username: str, password: str) -> str:
        self.status = "Signing in…"
        try:
            self.ctx.session.login(username, password)
        except ApiError as exc:
            self.status = str(exc) or "Login failed"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.status = "Login successful"
        return self.status


class ChangePasswordForm(Page):
    def submit(self, username: str, current_password: str, new_password: str) -> str:
        self.loading = True
        self.status = "Updating password…"
        try:
            text = self.ctx.client.reset_password(username, current_password, new_password)
        except UnauthorizedError:
            self.status = "Incorrect password."
        except ApiError as exc:
            self.status = f"Update failed: {exc}"
        except NetworkError:
            self.status = "Network error."
        else:
            self.status = text or "Password updated successfully."
            # the server cleared the cookies along with every token
            self.ctx.session.refresh()
        finally:
            self.loading = False
        return self.status


# -----------------
# Students
# -----------------

class StudentListPage(Page):
    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.students: List[StudentInfo] = []

    def load(self) -> str:
        self.status = "Loading students…"
        try:
            self.students = self.ctx.client.list_students()
        except UnauthorizedError as exc:
            self._resync_session(exc)
            self.status = SESSION_EXPIRED
        except ApiError as exc:
            self.status = f"Failed: {exc}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.status = "Loaded."
        return self.status

    def filter(self, text: str) -> List[StudentInfo]:
        needle = text.lower()
        return [s for s in self.students if needle in s.name.lower()]


class StudentPage(Page):
    parent_path = "/"

    def __init__(self, ctx: AppContext, student_id: int) -> None:
        super().__init__(ctx)
        self.student_id = student_id
        self.student: Optional[Student] = None

    @property
    def summary(self) -> Optional[ProgressSummary]:
        return self.student.summary() if self.student else None

    def load(self) -> str:
        if not self.ctx.session.signed_in:
            self.status = "Please log in."
            return self.status
        self.loading = True
        try:
            student = self.ctx.client.get_student(self.student_id)
        except (UnauthorizedError, NotFoundError) as exc:
            self._resync_session(exc)
            self.status = SESSION_EXPIRED
        except ApiError as exc:
            self.status = f"Failed: {exc}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.student = student
            self.ctx.students.set_one(student.id, student)
            self.status = "Loaded."
        finally:
            self.loading = False
        return self.status


class WorkPage(Page):
    def __init__(self, ctx: AppContext, student_id: Optional[int], class_id: int, type_code: Optional[str]) -> None:
        super().__init__(ctx)
        self.student_id = student_id
        self.class_id = class_id
        self.work_type = WorkType.from_code(type_code)
        self.content = ""
        self.submission: Optional[str] = None
        self.from_cache = False

    @property
    def parent_path(self) -> str:
        return f"/student?id={self.student_id}" if self.student_id is not None else "/"

    def _student(self) -> Student:
        cached = self.ctx.students.get(self.student_id)
        if cached is not None:
            self.from_cache = True
            return cached
        student = self.ctx.client.get_student(self.student_id)
        self.ctx.students.set_one(student.id, student)
        return student

    def load(self) -> str:
        if self.student_id is None or not self.ctx.session.signed_in:
            self.status = "Please log in."
            return self.status
        try:
            student = self._student()
        except (UnauthorizedError, NotFoundError) as exc:
            self._resync_session(exc)
            self.status = SESSION_EXPIRED
            return self.status
        except ApiError as exc:
            self.status = f"Failed: {exc}"
            return self.status
        except NetworkError:
            self.status = NETWORK_ERROR
            return self.status

        class_item = student.find_class(self.class_id)
        if class_item is None:
            self.content = "Class not found"
            self.status = "Class not found"
            return self.status
        self.content = class_item.content_for(self.work_type) or ""
        self.submission = class_item.submission_for(self.work_type)
        self.status = "Loaded."
        return self.status

    def submit(self, work: str) -> str:
        try:
            self.ctx.client.submit_work(self.work_type, self.class_id, work)
        except ApiError as exc:
            self.status = str(exc)
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            # local view only; the cached student keeps its old submission until refetched
            self.submission = work
            self.status = "Submitted"
        return self.status

    def ask_path(self) -> str:
        return f"/ask?c={self.class_id}&t={self.work_type.code}&s={self.student_id}"

    def publish_path(self) -> str:
        return f"/publish?c={self.class_id}&t={self.work_type.code}&s={self.student_id}"


# -----------------
# Forum
# -----------------

class AskPage(Page):
    def __init__(self, ctx: AppContext, student_id: Optional[int], class_id: Optional[int], type_code: Optional[str]) -> None:
        super().__init__(ctx)
        self.student_id = student_id
        self.class_id = class_id
        self.type_code = type_code

    @property
    def parent_path(self) -> str:
        return _work_parent(self.class_id, self.type_code, self.student_id)

    def submit(self, question: str, error: str = "", interpretation: str = "") -> str:
        if self.class_id is None or not self.type_code:
            self.status = "Invalid parameters"
            return self.status
        if not question.strip():
            self.status = "Question is required"
            return self.status
        self.loading = True
        try:
            self.ctx.client.ask(
                self.class_id,
                WorkType.from_code(self.type_code),
                question.strip(),
                error=error.strip(),
                interpretation=interpretation.strip(),
            )
        except ApiError as exc:
            self.status = f"Error: {exc}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.status = "Question submitted successfully"
        finally:
            self.loading = False
        return self.status


class ForumPage(Page):
    parent_path = "/"

    def __init__(self, ctx: AppContext, board: Optional[ForumBoard] = None) -> None:
        super().__init__(ctx)
        self.board = board or ForumBoard(ctx.client, ctx.session)
        self.error = ""

    @property
    def questions(self) -> List[Question]:
        return self.board.questions

    def load(self) -> str:
        if not self.ctx.session.signed_in:
            self.status = "Please log in."
            return self.status
        self.loading = True
        try:
            self.board.load()
        except ApiError as exc:
            self.error = str(exc) or "Failed to load questions"
            self.status = f"Error: {self.error}"
        except NetworkError:
            self.error = NETWORK_ERROR
            self.status = NETWORK_ERROR
        else:
            self.error = ""
            self.status = "Loaded."
        finally:
            self.loading = False
        return self.status

    def post_comment(self, question_id: int, text: str) -> str:
        try:
            self.board.post_comment(question_id, text)
        except (ValueError, PermissionError, LookupError) as exc:
            self.status = str(exc)
        except ApiError as exc:
            self.status = f"Error posting comment: {str(exc) or 'Failed to post comment'}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.status = "Comment posted"
        return self.status


# -----------------
# Projects
# -----------------

class ProjectsPage(Page):
    parent_path = "/"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.projects: List[Project] = []

    @property
    def ready_projects(self) -> List[Project]:
        return [p for p in self.projects if p.is_ready]

    def load(self) -> str:
        self.loading = True
        try:
            self.projects = self.ctx.client.list_projects()
        except ApiError as exc:
            self.status = f"Error: {exc}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            self.ctx.projects.set_all(self.projects)
            self.status = "Loaded."
        finally:
            self.loading = False
        return self.status


class ProjectViewPage(Page):
    parent_path = "/projects"

    def __init__(self, ctx: AppContext, project_id: int, status_param: Optional[str] = None) -> None:
        super().__init__(ctx)
        self.project_id = project_id
        self.status_param = status_param
        self.project: Optional[Project] = None
        self.from_cache = False
        self.view_recorded = False

    @property
    def show_building(self) -> bool:
        if self.status_param == ProjectStatus.PENDING.value:
            return True
        return bool(self.project and self.project.is_building)

    def _find(self) -> Optional[Project]:
        cached = self.ctx.projects.get(self.project_id)
        if cached is not None:
            self.from_cache = True
            return cached
        for p in self.ctx.client.list_projects():
            if p.id == self.project_id:
                self.ctx.projects.add(p)
                return p
        return None

    def load(self) -> str:
        self.loading = True
        try:
            self.project = self._find()
        except ApiError as exc:
            self.status = f"Error: {exc}"
            return self.status
        except NetworkError:
            self.status = NETWORK_ERROR
            return self.status
        finally:
            self.loading = False

        if self.project is None:
            self.status = "Project not found"
            return self.status
        if self.project.is_ready:
            self.view_recorded = self.ctx.client.record_view(self.project.id)
        self.status = "Loaded."
        return self.status


class PublishPage(Page):
    def __init__(self, ctx: AppContext, student_id: Optional[int], class_id: Optional[int], type_code: Optional[str]) -> None:
        super().__init__(ctx)
        self.student_id = student_id
        self.class_id = class_id
        self.type_code = type_code
        self.project: Optional[Project] = None

    @property
    def parent_path(self) -> str:
        return _work_parent(self.class_id, self.type_code, self.student_id)

    def view_path(self) -> Optional[str]:
        if self.project is None:
            return None
        return f"/projects/view?id={self.project.id}&status={ProjectStatus.PENDING.value}"

    def submit(self, title: str, description: str) -> str:
        if self.class_id is None or not self.type_code:
            self.status = "Invalid parameters"
            return self.status
        if not title.strip() or not description.strip():
            self.status = "Title and description are required"
            return self.status
        self.loading = True
        try:
            project = self.ctx.client.submit_project(
                self.class_id,
                WorkType.from_code(self.type_code),
                title.strip(),
                description.strip(),
            )
        except ApiError as exc:
            self.status = f"Error: {str(exc) or 'Failed to publish project'}"
        except NetworkError:
            self.status = NETWORK_ERROR
        else:
            project.author_name = project.author_name or self.ctx.session.user
            self.project = project
            self.ctx.projects.add(project)
            self.status = "Published"
        finally:
            self.loading = False
        return self.status
