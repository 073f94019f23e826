"""Domain model for the acting identity."""

from dataclasses import dataclass

DEFAULT_TEACHER_LABEL = "Teacher"


@dataclass(frozen=True)
class Identity:
    """Identity used to attribute teacher-side writes."""

    id: str
    label: str = DEFAULT_TEACHER_LABEL
