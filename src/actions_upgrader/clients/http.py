"""Base HTTP client with a bounded retry policy."""

import asyncio
import logging
import typing

import httpx

from actions_upgrader import errors, version

LOGGER = logging.getLogger(__name__)

RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class BaseURLHTTPClient:
    """Wraps an ``httpx.AsyncClient`` bound to a base URL.

    Requests failing with a transport error or a retryable status code are
    retried up to ``max_retries`` times with exponential backoff before a
    :class:`~actions_upgrader.errors.DirectoryServiceError` is raised.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.http_client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                'User-Agent': f'actions-upgrader/{version}',
                **(headers or {}),
            },
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> typing.Self:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def request(
        self, method: str, url: str, **kwargs: typing.Any
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises:
            errors.GitHubNotFoundError: On a 404 response
            errors.DirectoryServiceError: When the request ultimately fails

        """
        attempt = 0
        while True:
            try:
                response = await self.http_client.request(
                    method, url, **kwargs
                )
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise errors.DirectoryServiceError(
                        method, url, None, str(exc)
                    ) from exc
                LOGGER.warning('%s %s failed: %s, retrying', method, url, exc)
            else:
                if response.is_success:
                    return response
                if (
                    response.status_code not in RETRY_STATUS_CODES
                    or attempt >= self.max_retries
                ):
                    error_class = (
                        errors.GitHubNotFoundError
                        if response.status_code == 404
                        else errors.DirectoryServiceError
                    )
                    raise error_class(
                        method, url, response.status_code, response.text
                    )
                LOGGER.warning(
                    '%s %s returned %i, retrying',
                    method,
                    url,
                    response.status_code,
                )
            await asyncio.sleep(self.retry_backoff * 2**attempt)
            attempt += 1
