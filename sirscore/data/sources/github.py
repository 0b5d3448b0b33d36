"""GitHub repository search source."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.data.models import GithubSearchResult, parse_payload

if TYPE_CHECKING:
    from sirscore.data.client import AsyncUpstreamClient

GITHUB_API_URL = "https://api.github.com"
GITHUB_SOURCE = "github"


async def search_repository_count(
    client: AsyncUpstreamClient,
    query: str,
    *,
    token: str = "",
) -> int:
    """/search/repositories?q={query}&per_page=1 → total_count.

    Args:
        client: Upstream HTTP client.
        query: Search query (e.g. "solana language:rust").
        token: Optional GitHub token (raises the search rate limit).
    """
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    data = await client.get_json(
        f"{GITHUB_API_URL}/search/repositories",
        source=GITHUB_SOURCE,
        params={"q": query, "per_page": 1},
        headers=headers,
    )
    return parse_payload(GithubSearchResult, data, source=GITHUB_SOURCE).total_count
