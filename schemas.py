"""
Schemas for the Codeabode platform – students, classwork, forum and community projects

Each Pydantic model mirrors a JSON record exchanged with the platform API. Request bodies (the *In models)
are shared by the client and the development API in main.py.
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Union
from datetime import datetime
from enum import Enum

from progress import ProgressSummary, summarize_progress

COMPLETED_STATUSES = ("completed", "done", "finished")


class WorkType(str, Enum):
    CLASSWORK = "classwork"
    HOMEWORK = "homework"

    @property
    def code(self) -> str:
        return "cw" if self is WorkType.CLASSWORK else "hw"

    @classmethod
    def from_code(cls, code: Optional[str]) -> "WorkType":
        # anything that isn't the classwork code falls through to homework
        if code in ("cw", cls.CLASSWORK.value):
            return cls.CLASSWORK
        return cls.HOMEWORK


# -----------------
# Students
# -----------------

class StudentInfo(BaseModel):
    id: int
    name: str


class StudentClass(BaseModel):
    class_id: int
    status: str = ""
    name: str
    methods: List[str] = []
    stretch_methods: Optional[List[str]] = None
    skills_tested: Optional[List[str]] = None
    description: Optional[str] = None
    classwork: Optional[str] = None
    notes: Optional[str] = None
    hw: Optional[str] = None
    hw_notes: Optional[str] = None
    classwork_submission: Optional[str] = None
    homework_submission: Optional[str] = None

    def is_completed(self) -> bool:
        return (self.status or "").lower() in COMPLETED_STATUSES

    def content_for(self, work_type: WorkType) -> Optional[str]:
        return self.classwork if work_type is WorkType.CLASSWORK else self.hw

    def submission_for(self, work_type: WorkType) -> Optional[str]:
        if work_type is WorkType.CLASSWORK:
            return self.classwork_submission
        return self.homework_submission


class Student(BaseModel):
    id: int
    name: str
    age: int
    current_level: str
    final_goal: str
    notes: Optional[str] = None
    classes: List[StudentClass] = []
    future_concepts: List[str] = []
    current_class: Optional[int] = None

    def find_class(self, class_id: int) -> Optional[StudentClass]:
        for c in self.classes:
            if c.class_id == class_id:
                return c
        return None

    def summary(self) -> ProgressSummary:
        return summarize_progress(self.classes)


# -----------------
# Projects
# -----------------

class ProjectStatus(str, Enum):
    PENDING = "pending"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


class Project(BaseModel):
    id: int
    title: str
    description: str = ""
    author_name: Optional[str] = None
    views: int = 0
    status: ProjectStatus = ProjectStatus.PENDING
    created_at: Optional[datetime] = None
    url: Optional[str] = Field(None, description="Playable URL, set once the build is ready")

    @property
    def is_ready(self) -> bool:
        return self.status is ProjectStatus.READY

    @property
    def is_building(self) -> bool:
        return self.status in (ProjectStatus.PENDING, ProjectStatus.BUILDING)


# -----------------
# Forum
# -----------------

class Comment(BaseModel):
    id: int
    account_name: Optional[str] = None
    comment: str
    created_at: Union[datetime, str] = Field(
        ...,
        union_mode="left_to_right",
        description="Server timestamp; kept as the raw text when it is not ISO 8601",
    )
    pending: bool = Field(False, description="Client-side only: optimistic comment not yet seen in a server listing")


class Question(BaseModel):
    id: int
    student_name: str
    error: Optional[str] = None
    interpretation: Optional[str] = None
    question: str
    work: Optional[str] = None
    created_at: datetime
    comments: List[Comment] = []


# -----------------
# Request bodies
# -----------------

class LoginIn(BaseModel):
    username: str
    password: str


class ResetPasswordIn(BaseModel):
    username: str
    password: str
    new_password: str


class WorkIn(BaseModel):
    class_id: int
    work: str


class AskIn(BaseModel):
    class_id: int
    work_type: WorkType
    error: str = ""
    interpretation: str = ""
    question: str


class CommentIn(BaseModel):
    question_id: int
    comment: str


class ProjectIn(BaseModel):
    class_id: int
    work_type: WorkType
    title: str
    description: str
    deploy_method: str = "pygbag"
