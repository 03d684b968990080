from __future__ import annotations

import logging

import httpx

from gh_forum.domain.errors import AuthRequiredError, GraphError, TransportError
from gh_forum.domain.interfaces import IQueryExecutor

log = logging.getLogger(__name__)

GITHUB_API_URL= "https://api.github.com/graphql"
GITHUB_API_VERSION= "2022-11-28"


class GraphQLExecutor(IQueryExecutor):
    """
    Concrete implementation of IQueryExecutor for GitHub's GraphQL API.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. The caller owns the client lifecycle and its
    timeout; tests pass a client built on httpx.MockTransport.

    One call = one POST. There is no retry or backoff here: a failed call
    surfaces immediately as TransportError or GraphError.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str = GITHUB_API_URL) -> None:
        self._client   = client
        self._endpoint = endpoint

    @staticmethod
    def _headers(token: str | None) -> dict[str, str]:
        headers = {
            "Accept":               "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "Content-Type":         "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def execute(self, query: str, variables: dict | None = None, token: str | None = None) -> dict:
        """
        POST {query, variables} and return the envelope's `data`.

        Raises:
            TransportError — network failure (status None) or non-2xx status
            GraphError     — HTTP success, but the envelope has `errors`;
                             the message is the first error's message
        """
        try:
            response = await self._client.post(
                self._endpoint,
                headers=self._headers(token),
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            text   = exc.response.text or exc.response.reason_phrase
            log.warning("GraphQL request failed with HTTP %d: %.200s", status, text)
            raise TransportError(f"GraphQL request failed: HTTP {status}", status=status, text=text) from exc
        except httpx.RequestError as exc:
            log.warning("GraphQL request failed: %s", exc)
            raise TransportError(f"GraphQL request failed: {exc}", text=str(exc)) from exc

        try:
            envelope = response.json()
        except ValueError as exc:
            raise TransportError(
                "GraphQL response was not valid JSON",
                status=response.status_code,
                text=response.text,
            ) from exc
        if not isinstance(envelope, dict):
            raise TransportError("GraphQL response was not an object", status=response.status_code, text=response.text)

        # GraphQL-level errors (different from HTTP errors)
        errors = envelope.get("errors")
        if errors:
            message = errors[0].get("message") or "Unknown GraphQL error"
            log.warning("GraphQL errors: %s", errors)
            raise GraphError(message, errors)

        return envelope.get("data") or {}

    async def mutate(self, mutation: str, variables: dict | None, token: str | None) -> dict:
        if not token:
            raise AuthRequiredError("this change")
        return await self.execute(mutation, variables, token)
