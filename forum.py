"""
Forum board: questions with comments, plus optimistic comment posting.

A posted comment is appended immediately with a synthetic negative id and
pending=True, because the comment endpoint returns only a timestamp. The next
load() is authoritative: reconcile() swaps in the server listing and reports
any pending comment the server does not know about.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from client import PlatformClient
from schemas import Comment, Question
from session import SessionState

logger = logging.getLogger(__name__)


def _same_comment(local: Comment, remote: Comment) -> bool:
    return (
        local.comment == remote.comment
        and local.account_name == remote.account_name
        and local.created_at == remote.created_at
    )


class ForumBoard:
    def __init__(
        self,
        client: PlatformClient,
        session: SessionState,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.session = session
        self.clock = clock
        self.questions: List[Question] = []

    def get_question(self, question_id: int) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def pending_comments(self) -> List[Comment]:
        return [c for q in self.questions for c in q.comments if c.pending]

    # Authoritative fetch

    def load(self) -> List[Comment]:
        """Refetch every question. Returns optimistic comments the server never confirmed."""
        return self.reconcile(self.client.get_questions())

    def reconcile(self, server_questions: List[Question]) -> List[Comment]:
        by_id = {q.id: q for q in server_questions}
        unconfirmed: List[Comment] = []
        for local in self.questions:
            for c in local.comments:
                if not c.pending:
                    continue
                remote = by_id.get(local.id)
                if remote is None or not any(_same_comment(c, r) for r in remote.comments):
                    unconfirmed.append(c)

        for c in unconfirmed:
            logger.warning("Dropping unconfirmed comment %d (%r)", c.id, c.comment)
        self.questions = list(server_questions)
        return unconfirmed

    # Optimistic append

    def _synthetic_id(self, question: Question) -> int:
        taken = {c.id for c in question.comments}
        candidate = -max(int(self.clock() * 1000), 1)
        while candidate in taken:
            candidate -= 1
        return candidate

    def post_comment(self, question_id: int, text: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment cannot be empty.")
        if not self.session.signed_in:
            raise PermissionError("Sign in to comment.")
        question = self.get_question(question_id)
        if question is None:
            raise LookupError(f"Unknown question {question_id}")

        created_at = self.client.comment(question_id, text)
        comment = Comment(
            id=self._synthetic_id(question),
            account_name=self.session.user,
            comment=text,
            created_at=created_at,
            pending=True,
        )
        question.comments.append(comment)
        return comment
