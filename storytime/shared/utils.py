"""
Shared utility functions for Story Time services.
Contains common helper functions used across services.
"""
import time
import random
import string
from typing import Dict, Any, Optional
from functools import wraps
import asyncio
import httpx
from .logging import get_logger

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def generate_story_id() -> str:
    """Generate a story identifier: story_<epoch ms>_<7 base36 chars>"""
    suffix = ''.join(random.choices(_BASE36, k=7))
    return f"story_{int(time.time() * 1000)}_{suffix}"


def random_suffix(upper: int = 10_000) -> int:
    """Random integer used for room and participant names"""
    return random.randrange(upper)


def timing_decorator(func):
    """Decorator to measure function execution time"""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            duration_ms = int((time.time() - start_time) * 1000)
            logger.debug(f"Function {func.__name__} completed in {duration_ms}ms")
            return result
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Function {func.__name__} failed after {duration_ms}ms: {e}")
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
            duration_ms = int((time.time() - start_time) * 1000)
            logger.debug(f"Function {func.__name__} completed in {duration_ms}ms")
            return result
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Function {func.__name__} failed after {duration_ms}ms: {e}")
            raise

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper


class ServiceClientError(Exception):
    """Raised when an external service call fails"""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ServiceClient:
    """Base class for HTTP communication with external services"""

    def __init__(
        self,
        base_url: str,
        api_key: str = None,
        api_key_header: str = "X-API-Key",
        timeout: int = 30
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.headers = {
            "User-Agent": "storytime-backend/1.0"
        }

        if api_key:
            self.headers[api_key_header] = api_key

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Dict[str, Any] = None,
        params: Dict[str, Any] = None,
        files: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Make HTTP request to the service"""
        url = self._url(endpoint)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if files is not None:
                    # Multipart: form fields travel in data, httpx sets the boundary header
                    response = await client.request(
                        method=method,
                        url=url,
                        data=data,
                        files=files,
                        params=params,
                        headers=self.headers
                    )
                else:
                    response = await client.request(
                        method=method,
                        url=url,
                        json=data,
                        params=params,
                        headers=self.headers
                    )
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException:
            logger.error(f"Request timeout to {url}")
            raise ServiceClientError(f"Service request timeout: {url}")
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} for {url}")
            raise ServiceClientError(
                f"Service error {e.response.status_code}: {url}",
                status_code=e.response.status_code,
                detail=e.response.text
            )
        except httpx.HTTPError as e:
            logger.error(f"Request failed to {url}: {e}")
            raise ServiceClientError(f"Service communication error: {url}")

    async def post_multipart(
        self,
        endpoint: str,
        data: Dict[str, Any],
        files: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Make multipart POST request"""
        return await self._request("POST", endpoint, data=data, files=files)
