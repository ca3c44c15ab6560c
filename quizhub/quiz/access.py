"""
Quiz access rules.

Handlers build a ``Principal`` from the signed-in user and pass it into
every quiz operation; nothing here reads the session or touches storage.
"""
from typing import NamedTuple

from quizhub.auth.models import ROLE_ADMIN
from quizhub.quiz.errors import Forbidden, QuizNotFound


ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_SUBMIT = "submit"
ADMIN_ACTIONS = (ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE)


class Principal(NamedTuple):
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=user.id, role=user.role)


def can_view(principal: Principal, quiz) -> bool:
    """Admins see every quiz; everyone else sees active quizzes only."""
    return principal.is_admin or bool(quiz.is_active)


def can_mutate(principal: Principal, quiz, action: str) -> bool:
    """
    Authoring actions are admin-only. Submitting is open to any
    authenticated principal that can view the quiz; the attempt policy
    is checked separately.
    """
    if action in ADMIN_ACTIONS:
        return principal.is_admin
    if action == ACTION_SUBMIT:
        return quiz is not None and can_view(principal, quiz)
    return False


def require_view(principal: Principal, quiz) -> None:
    if not can_view(principal, quiz):
        raise Forbidden("Quiz not available")


def require_mutate(principal: Principal, quiz, action: str) -> None:
    if can_mutate(principal, quiz, action):
        return
    if action == ACTION_SUBMIT:
        raise QuizNotFound("Quiz not found or inactive")
    raise Forbidden("Only administrators can manage quizzes")
