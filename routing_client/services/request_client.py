"""
HTTP request client shared by the routing engine integrations.

Features:
- One persistent httpx.AsyncClient per engine base URL
- Exponential backoff retry logic (optionally on HTTP 429)
- Dry-run mode describing a request without sending it
- Uniform APIError / ClientError wrapping of failures
"""
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
from urllib.request import getproxies, proxy_bypass_environment

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from routing_client.core.config import settings
from routing_client.core.exceptions import APIError, ClientError
from routing_client.core.logging import StructuredLogger, get_logger, request_id_var

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})

# Header values never written to error messages
SENSITIVE_HEADERS = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api-key",
})
REDACTED = "[REDACTED]"

HeaderValue = Union[str, int, float]


@dataclass(frozen=True)
class RequestArgs:
    """Arguments of a single routing engine request."""
    endpoint: str  # appended to the client's base URL
    get_params: Optional[Mapping[str, Any]] = None
    post_params: Optional[Mapping[str, Any]] = None
    auth: Optional[Mapping[str, str]] = None  # always sent as query parameters
    dry_run: bool = False

    @property
    def method(self) -> str:
        return "GET" if self.post_params is None else "POST"


# =============================================================================
# Retry predicates
# =============================================================================

def _request_of(error: BaseException) -> Optional[httpx.Request]:
    if not isinstance(error, httpx.HTTPError):
        return None
    try:
        return error.request
    except RuntimeError:
        return None


def _response_of(error: BaseException) -> Optional[httpx.Response]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response
    return None


def is_network_error(error: BaseException) -> bool:
    """Connection level failure without a response (timeouts excluded)."""
    return isinstance(error, httpx.NetworkError)


def is_idempotent_request_error(error: BaseException) -> bool:
    """Failure of an idempotent request that is safe to send again."""
    if isinstance(error, (httpx.TimeoutException, httpx.UnsupportedProtocol)):
        return False
    request = _request_of(error)
    if request is None or request.method not in IDEMPOTENT_METHODS:
        return False
    response = _response_of(error)
    if response is None:
        return isinstance(error, httpx.TransportError)
    return 500 <= response.status_code <= 599


def is_network_or_idempotent_request_error(error: BaseException) -> bool:
    return is_network_error(error) or is_idempotent_request_error(error)


def is_over_query_limit_error(error: BaseException) -> bool:
    response = _response_of(error)
    return response is not None and response.status_code == 429


def retry_over_query_limit_condition(error: BaseException) -> bool:
    return is_network_or_idempotent_request_error(error) or is_over_query_limit_error(error)


# =============================================================================
# Error serialization
# =============================================================================

def _is_sensitive_header(name: str) -> bool:
    name = name.lower()
    return name in SENSITIVE_HEADERS or name.endswith(("-api-key", "-token"))


def _describe_request(request: httpx.Request) -> dict[str, Any]:
    return {
        "method": request.method,
        "url": str(request.url),
        "headers": {
            name: REDACTED if _is_sensitive_header(name) else value
            for name, value in request.headers.items()
        },
    }


def _describe_error(error: BaseException) -> dict[str, Any]:
    description: dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
    }
    request = _request_of(error)
    if request is not None:
        description["request"] = _describe_request(request)
    response = _response_of(error)
    if response is not None:
        description["response"] = {
            "status_code": response.status_code,
            "reason_phrase": response.reason_phrase,
            "body": response.text,
        }
    return description


def _describe_params(params: Optional[Mapping[str, Any]]) -> str:
    return json.dumps(dict(params) if params is not None else None, default=str)


# =============================================================================
# Client
# =============================================================================

class RequestClient:
    """
    Client from which all requests to a routing engine's server are made.

    Wraps a single httpx.AsyncClient configured with the merged headers,
    the timeout and any caller supplied client options. The client is
    safe to share between concurrent requests.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_over_query_limit: Optional[bool] = None,
        headers: Optional[Mapping[str, HeaderValue]] = None,
        max_retries: Optional[int] = None,
        client_options: Optional[Mapping[str, Any]] = None,
        retry_backoff: Optional[float] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Create a new client instance.

        Args:
            base_url: Base URL requests are made to
            user_agent: Custom user agent passed in each request header
            timeout: Seconds to await a response
            retry_over_query_limit: Retry requests answered with status 429
            headers: Additional headers passed with each request
            max_retries: Maximum number of retries after the first attempt
            client_options: Extra keyword arguments for httpx.AsyncClient,
                these win over the options derived from the arguments above
            retry_backoff: Multiplier of the exponential retry delay in seconds
            logger: Structured logger receiving retry events
        """
        self.base_url = base_url
        self.user_agent = user_agent or settings.DEFAULT_USER_AGENT
        self.timeout = timeout if timeout is not None else settings.DEFAULT_TIMEOUT
        self.retry_over_query_limit = (
            retry_over_query_limit
            if retry_over_query_limit is not None
            else settings.DEFAULT_RETRY_OVER_QUERY_LIMIT
        )
        self.max_retries = max_retries if max_retries is not None else settings.DEFAULT_MAX_RETRIES
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.RETRY_BACKOFF_BASE
        )
        self.client_options = dict(client_options or {})
        self._logger = logger or get_logger(__name__)

        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")

        merged = httpx.Headers(settings.default_headers())
        merged["User-Agent"] = self.user_agent
        merged.update({key: str(value) for key, value in (headers or {}).items()})
        self.headers = merged

        options: dict[str, Any] = {
            "headers": self.headers,
            "timeout": httpx.Timeout(self.timeout),
            "follow_redirects": True,
            **self.client_options,
        }
        self._client = httpx.AsyncClient(**options)
        self.proxy = self._resolve_proxy()

        self._retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_backoff, max=settings.RETRY_BACKOFF_MAX),
            retry=retry_if_exception(
                retry_over_query_limit_condition
                if self.retry_over_query_limit
                else is_network_or_idempotent_request_error
            ),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _resolve_proxy(self) -> Optional[Any]:
        """
        Proxy used for the base URL.

        An explicit client_options["proxy"] wins. Otherwise, unless
        trust_env is disabled, the HTTP(S)_PROXY / ALL_PROXY environment
        variables are consulted the same way httpx does, honoring NO_PROXY.
        """
        proxy = self.client_options.get("proxy")
        if proxy is not None or not self.client_options.get("trust_env", True):
            return proxy
        try:
            url = httpx.URL(self.base_url)
        except httpx.InvalidURL:
            return None
        if url.host and proxy_bypass_environment(url.host):
            return None
        env_proxies = getproxies()
        return env_proxies.get(url.scheme) or env_proxies.get("all")

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        response = _response_of(error) if error is not None else None
        status_code = response.status_code if response is not None else None
        status_text = response.reason_phrase if response is not None else None
        retry_number = retry_state.attempt_number

        self._logger.log(
            "request_retry",
            {
                "status_code": status_code,
                "status_text": status_text,
                "retry_number": retry_number,
                "error": type(error).__name__ if error is not None else None,
            },
            message=(
                f"Request failed with status code {status_code}: {status_text}. "
                f"Retry number {retry_number}."
            ),
            level=logging.WARNING,
        )

    async def _send(self, method: str, url: httpx.URL, **kwargs) -> httpx.Response:
        """Send a request, retrying according to the configured policy."""
        async for attempt in self._retrying.copy():
            with attempt:
                response = await self._client.request(method, url, **kwargs)
                response.raise_for_status()
        return response

    @staticmethod
    def _payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _build_url(self, args: RequestArgs) -> httpx.URL:
        try:
            url = httpx.URL(f"{self.base_url}{args.endpoint}")
        except (httpx.InvalidURL, TypeError) as exc:
            raise ClientError(type(exc).__name__, str(exc)) from exc
        for key, value in (args.auth or {}).items():
            url = url.copy_add_param(key, value)
        return url

    async def request(self, args: RequestArgs) -> Any:
        """
        Make a GET or POST request depending on the passed arguments.

        Presence of post_params (an empty mapping included) makes the
        request a POST, otherwise a GET is made.

        Args:
            args: Request arguments

        Returns:
            Decoded response payload, or a description of the request
            when args.dry_run is set

        Raises:
            APIError: The engine answered with an error or did not answer
            ClientError: A GET request could not be built
        """
        token = request_id_var.set(uuid.uuid4().hex)
        try:
            url = self._build_url(args)
            if args.post_params is not None:
                return await self._post(url, args)
            return await self._get(url, args)
        finally:
            request_id_var.reset(token)

    async def _post(self, url: httpx.URL, args: RequestArgs) -> Any:
        if args.dry_run:
            return self._dry_run_info(url, "POST", args.post_params)

        self._logger.debug("Routing request", extra={"method": "POST", "url": str(url)})
        try:
            response = await self._send("POST", url, json=dict(args.post_params))
        except Exception as exc:
            response = _response_of(exc)
            status_code = response.status_code if response is not None else None
            raise APIError(
                message=(
                    f"Request failed with status {status_code}: "
                    f"{json.dumps(_describe_error(exc), default=str)}"
                ),
                status_code=status_code,
                details={"method": "POST", "url": str(url), "error": type(exc).__name__},
            ) from exc
        return self._payload(response)

    async def _get(self, url: httpx.URL, args: RequestArgs) -> Any:
        if args.dry_run:
            return self._dry_run_info(url, "GET", args.get_params)

        self._logger.debug("Routing request", extra={"method": "GET", "url": str(url)})
        try:
            # auth parameters already in the URL stay in the query
            if args.get_params:
                url = url.copy_merge_params(dict(args.get_params))
            response = await self._send("GET", url)
        except Exception as exc:
            raise self._classify_get_error(exc, url) from exc
        return self._payload(response)

    @staticmethod
    def _classify_get_error(error: Exception, url: httpx.URL) -> Exception:
        details = {"method": "GET", "url": str(url), "error": type(error).__name__}

        response = _response_of(error)
        if response is not None:
            return APIError(
                message=f"Request failed with status {response.status_code}: {error}",
                status_code=response.status_code,
                details=details,
            )

        request = _request_of(error)
        if request is not None:
            return APIError(
                message=(
                    "Request failed with request "
                    f"{json.dumps(_describe_request(request), default=str)}"
                ),
                details=details,
            )

        # nothing was sent, the request setup itself failed
        return ClientError(type(error).__name__, str(error))

    @staticmethod
    def _dry_run_info(
        url: httpx.URL,
        method: str,
        params: Optional[Mapping[str, Any]],
    ) -> str:
        return (
            f"URL: {url}\n"
            f"Method: {method}\n"
            f"Parameters: {_describe_params(params)}"
        )
