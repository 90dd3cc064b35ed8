"""Repository-related data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RepoDescriptor:
    """A repository of the organization being reported on."""

    name: str
    created_at: datetime
    primary_language: str | None
    languages: tuple[str, ...] = ()

    @property
    def created_date(self) -> str:
        """Creation date as YYYY-MM-DD."""
        return self.created_at.strftime("%Y-%m-%d")


@dataclass
class CommitResult:
    """Result of committing a file through the contents API."""

    path: str
    sha: str | None
    html_url: str | None
