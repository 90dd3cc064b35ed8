"""Organization repositories resource client."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from codefreq.exceptions import GraphQLError, NotFoundError
from codefreq.logging import get_logger
from codefreq.types.repos import RepoDescriptor

if TYPE_CHECKING:
    from codefreq.transport import AsyncHTTPTransport

logger = get_logger("repos")

PAGE_SIZE = 100

ORG_REPOSITORIES_QUERY = """
query ($owner: String!, $cursorID: String, $pageSize: Int!) {
  organization(login: $owner) {
    repositories(first: $pageSize, after: $cursorID) {
      nodes {
        name
        createdAt
        primaryLanguage {
          name
        }
        languages(first: 100) {
          nodes {
            name
          }
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""


class ReposClient:
    """Client for enumerating an organization's repositories."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the repos client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def list_for_org(self, org: str) -> list[RepoDescriptor]:
        """
        List every repository of an organization.

        Pages through the GraphQL connection 100 nodes at a time and returns
        the fully materialized list in arrival order.

        Args:
            org: Organization login

        Returns:
            List of RepoDescriptor objects

        Raises:
            NotFoundError: If the organization does not exist
            GraphQLError: On GraphQL errors or a cursor that does not advance
        """
        repos: list[RepoDescriptor] = []
        cursor: str | None = None
        seen_cursors: set[str] = set()
        page = 0

        while True:
            data = await self.transport.graphql(
                ORG_REPOSITORIES_QUERY,
                {"owner": org, "cursorID": cursor, "pageSize": PAGE_SIZE},
            )
            organization = data.get("organization")
            if organization is None:
                raise NotFoundError("NOT_FOUND", f"Organization {org!r} not found")

            connection = organization["repositories"]
            nodes = connection.get("nodes") or []
            repos.extend(_descriptor(node) for node in nodes if node)
            page += 1
            logger.debug("Fetched page %d of %s repositories (%d nodes)", page, org, len(nodes))

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break

            cursor = page_info.get("endCursor")
            if not cursor or cursor in seen_cursors:
                raise GraphQLError(
                    "PAGINATION_ERROR",
                    f"Repository listing for {org!r} reported more pages without a new cursor",
                )
            seen_cursors.add(cursor)

        logger.info("Found %d repositories in %s", len(repos), org)
        return repos


def _descriptor(node: dict[str, Any]) -> RepoDescriptor:
    primary = node.get("primaryLanguage")
    languages = node.get("languages") or {}
    return RepoDescriptor(
        name=node["name"],
        created_at=datetime.fromisoformat(node["createdAt"].replace("Z", "+00:00")),
        primary_language=primary["name"] if primary else None,
        languages=tuple(
            language["name"] for language in languages.get("nodes") or [] if language
        ),
    )
