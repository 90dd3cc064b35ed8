"""Repository contents resource client."""

import base64
from typing import TYPE_CHECKING

from codefreq.exceptions import CommitConflictError, ConflictError, ValidationError
from codefreq.logging import get_logger
from codefreq.types.repos import CommitResult

if TYPE_CHECKING:
    from codefreq.transport import AsyncHTTPTransport

logger = get_logger("contents")


class ContentsClient:
    """Client for writing files into a repository."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the contents client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        committer_name: str,
        committer_email: str,
        branch: str | None = None,
        sha: str | None = None,
    ) -> CommitResult:
        """
        Create or update a file with a single commit.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository
            content: Raw file content
            message: Commit message
            committer_name: Committer name
            committer_email: Committer email
            branch: Target branch (default: repository default branch)
            sha: Blob sha of the file being replaced, when updating

        Returns:
            CommitResult with the commit sha and file URL

        Raises:
            CommitConflictError: If the file changed underneath the commit
        """
        body: dict = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "committer": {"name": committer_name, "email": committer_email},
        }
        if branch:
            body["branch"] = branch
        if sha:
            body["sha"] = sha

        try:
            data = await self.transport.request_json(
                "PUT", f"/repos/{owner}/{repo}/contents/{path}", body=body
            )
        except ConflictError as e:
            raise CommitConflictError(e.code, e.message, e.request_id) from e
        except ValidationError as e:
            # 422 is returned when an existing file is written without its sha
            if "sha" in e.message.lower():
                raise CommitConflictError(e.code, e.message, e.request_id) from e
            raise

        data = data or {}
        commit = data.get("commit") or {}
        file_info = data.get("content") or {}
        result = CommitResult(
            path=file_info.get("path", path),
            sha=commit.get("sha"),
            html_url=file_info.get("html_url"),
        )
        logger.info("Committed %s to %s/%s (%s)", result.path, owner, repo, result.sha)
        return result
