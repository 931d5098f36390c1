"""
Job posting read model.

Jobs are owned by the job-board service; the pipeline only reads the
fields that feed the job description text and skill matching.
"""

from typing import Any, Optional

from pydantic import Field, field_validator

from .base import BaseDocument


class JobPosting(BaseDocument):
    """The subset of a job posting used for matching."""

    name: str = ""
    description: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    level: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, v: Any) -> list[str]:
        """Accept skills stored as plain strings or as {name: ...} objects."""
        if not v:
            return []
        if not isinstance(v, (list, tuple)):
            return []
        names = []
        for item in v:
            if isinstance(item, str):
                name = item
            elif isinstance(item, dict):
                name = item.get("name") or ""
            else:
                name = getattr(item, "name", "") or ""
            name = name.strip()
            if name:
                names.append(name)
        return names

    class Settings:
        """MongoDB collection settings."""

        name = "jobs"
