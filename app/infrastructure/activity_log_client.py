"""
Infrastructure layer: Activity log store client with retry logic.
"""
import logging
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ValidationError
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from app.config import settings
from app.infrastructure.api_constants import APIConstants, LogStoreEndpoints

logger = logging.getLogger(__name__)


class ActivityLogPage(BaseModel):
    """One page of the tree logs endpoint."""
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    # Left unvalidated, nulls included; the yield extractor skips malformed records
    results: List[Any]


class LogStoreError(Exception):
    """Raised when the activity log store cannot be reached or refuses a request."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class _RetryableStatusError(Exception):
    """Server-side (5xx) failure that is worth retrying."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"{response.status_code} - {response.text}")
        self.response = response


class ActivityLogClient:
    """
    Client for the activity log store.
    Implements retry logic with exponential backoff.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client, defaulting to the configured log store."""
        self.base_url = (base_url or settings.log_store_base_url).rstrip("/")
        self.api_key = settings.log_store_api_key if api_key is None else api_key
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.log_store_timeout,
        )

    async def __aenter__(self) -> "ActivityLogClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((_RetryableStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _send(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = await self.client.request(method, url, **kwargs)
        if response.status_code >= 500:
            raise _RetryableStatusError(response)
        if response.status_code >= 400:
            # Client errors are final
            raise LogStoreError(
                f"Log store request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response.json()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path or absolute URL
            **kwargs: Additional arguments for the request

        Returns:
            Response data as dictionary

        Raises:
            LogStoreError: If the request fails after retries
        """
        try:
            return await self._send(method, endpoint, **kwargs)
        except _RetryableStatusError as e:
            raise LogStoreError(
                f"Log store request failed after retries: {e}",
                status_code=502,
            ) from e
        except httpx.RequestError as e:
            raise LogStoreError(f"Log store request error: {str(e)}", status_code=503) from e
        except ValueError as e:
            # Body was not JSON
            raise LogStoreError(f"Log store returned an invalid body: {str(e)}") from e

    async def get_tree_logs(self, tree_id: str) -> List[Any]:
        """
        Fetch every activity log record of a tree, following pagination.

        Args:
            tree_id: Tree identifier

        Returns:
            Raw log records in the order the store returned them

        Raises:
            LogStoreError: If the request fails or the tree is unknown
        """
        records: List[Any] = []
        url = LogStoreEndpoints.get_tree_logs(tree_id)
        params: Optional[Dict[str, Any]] = {"page_size": APIConstants.DEFAULT_PAGE_SIZE}

        for _ in range(APIConstants.MAX_PAGES):
            data = await self._make_request("GET", url, params=params)
            try:
                page = ActivityLogPage.model_validate(data)
            except ValidationError as e:
                raise LogStoreError(f"Unexpected log store payload: {e.error_count()} errors") from e
            records.extend(page.results)
            if not page.next:
                break
            # The next link already carries the query string
            url, params = page.next, None
        else:
            logger.warning(f"Stopped paging logs for tree {tree_id} after "
                           f"{APIConstants.MAX_PAGES} pages")

        logger.info(f"Fetched {len(records)} activity logs for tree {tree_id}")
        return records
