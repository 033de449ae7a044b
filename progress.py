"""
Progress summary for a student's class list.

A class counts as completed when its status is one of completed/done/finished,
compared case-insensitively. Percent is rounded half-up to a whole number.
"""
import math
from typing import Iterable

from pydantic import BaseModel


class ProgressSummary(BaseModel):
    total: int = 0
    completed: int = 0
    percent: int = 0
    methods: int = 0
    stretch: int = 0
    skills: int = 0


def summarize_progress(classes: Iterable) -> ProgressSummary:
    classes = list(classes)
    total = len(classes)
    completed = methods = stretch = skills = 0
    for c in classes:
        if c.is_completed():
            completed += 1
        methods += len(c.methods or [])
        stretch += len(c.stretch_methods or [])
        skills += len(c.skills_tested or [])

    percent = math.floor(completed / total * 100 + 0.5) if total else 0
    return ProgressSummary(
        total=total,
        completed=completed,
        percent=percent,
        methods=methods,
        stretch=stretch,
        skills=skills,
    )
