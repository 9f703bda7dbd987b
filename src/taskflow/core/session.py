# src/taskflow/core/session.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .models import Employee


@dataclass(slots=True, frozen=True)
class Session:
    """
    Explicit "who is acting" context.

    Created by a successful login and dropped on logout; every command and
    query receives it (or its user) as an argument instead of reading a global.
    """

    user: Employee
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def user_id(self) -> str:
        return self.user.id
