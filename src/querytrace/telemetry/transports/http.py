# src/querytrace/telemetry/transports/http.py
"""HTTP transport for telemetry batches.

Posts each batch to the Snowflake telemetry endpoint:

    POST <endpoint>/telemetry/send
    {"logs": [{"timestamp": <epoch ms>, "message": <event document>}, ...]}

send_batch_async() hands the batch to a single background worker thread and
returns immediately. Delivery failures are logged and dropped; nothing is
retried.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx
import structlog

from querytrace.telemetry.errors import TelemetryTransportError

logger = structlog.get_logger(__name__)

_DEFAULT_PATH = "/telemetry/send"
_DEFAULT_TIMEOUT = 10.0


class HttpTelemetryTransport:
    """Relay telemetry batches to the remote telemetry endpoint over HTTP.

    Configuration options:
        endpoint: Base URL of the account (required)
        path: Request path (default: "/telemetry/send")
        token: Session token, sent as 'Authorization: Snowflake Token="..."'
        timeout: Request timeout in seconds (default: 10)

    Example configuration:
        telemetry:
          transport:
            name: http
            options:
              endpoint: https://myaccount.snowflakecomputing.com
              token: ${SNOWFLAKE_SESSION_TOKEN}

    Thread safety:
        add_log_to_batch() and send_batch_async() may be called from any
        thread. Batches are posted one at a time, in submission order.
    """

    _name = "http"

    def __init__(self) -> None:
        self._url: str | None = None
        self._headers: dict[str, str] = {}
        self._timeout: float = _DEFAULT_TIMEOUT
        self._client: httpx.Client | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._batch: list[dict[str, Any]] = []
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    def configure(self, options: dict[str, Any]) -> None:
        """Configure endpoint, authentication and timeout.

        Raises:
            TelemetryTransportError: If endpoint is missing or options are invalid
        """
        endpoint = options.get("endpoint")
        if not isinstance(endpoint, str) or not endpoint:
            raise TelemetryTransportError(self._name, "HTTP transport requires 'endpoint' in options")
        if not endpoint.startswith(("http://", "https://")):
            raise TelemetryTransportError(self._name, f"'endpoint' must be an http(s) URL, got {endpoint!r}")

        path = options.get("path", _DEFAULT_PATH)
        if not isinstance(path, str) or not path.startswith("/"):
            raise TelemetryTransportError(self._name, f"'path' must start with '/', got {path!r}")

        timeout = options.get("timeout", _DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
            raise TelemetryTransportError(self._name, f"'timeout' must be a positive number, got {timeout!r}")

        self._url = endpoint.rstrip("/") + path
        self._timeout = float(timeout)
        self._headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = options.get("token")
        if token:
            self._headers["Authorization"] = f'Snowflake Token="{token}"'

        self._client = httpx.Client(timeout=self._timeout, headers=self._headers)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telemetry-send")
        self._closed = False
        logger.debug("HTTP transport configured", url=self._url, timeout=self._timeout, authenticated=bool(token))

    def add_log_to_batch(self, document: dict[str, Any], timestamp_ms: int) -> None:
        with self._lock:
            self._batch.append({"timestamp": timestamp_ms, "message": document})

    def send_batch_async(self) -> None:
        """Submit the pending batch to the send worker without waiting.

        An empty batch is not posted.
        """
        with self._lock:
            batch, self._batch = self._batch, []
        if not batch:
            return
        if self._executor is None or self._closed:
            logger.warning("HTTP transport not open, dropping telemetry batch", events=len(batch))
            return
        try:
            self._executor.submit(self._post, batch)
        except RuntimeError as e:
            # Executor shut down between the check and the submit
            logger.warning("HTTP transport closed, dropping telemetry batch", events=len(batch), error=str(e))

    def _post(self, batch: list[dict[str, Any]]) -> None:
        """Worker thread: post one batch. Must not raise."""
        assert self._client is not None and self._url is not None
        try:
            response = self._client.post(self._url, json={"logs": batch})
            response.raise_for_status()
            logger.debug("Telemetry batch delivered", events=len(batch), status=response.status_code)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Telemetry endpoint rejected batch",
                events=len(batch),
                status=e.response.status_code,
            )
        except httpx.HTTPError as e:
            logger.warning("Telemetry batch send failed", events=len(batch), error=str(e))
        except Exception as e:
            # Runs on the worker thread; nothing inspects the Future
            logger.warning(
                "Telemetry batch dropped",
                events=len(batch),
                error_type=type(e).__name__,
                error=str(e),
            )

    def close(self) -> None:
        """Wait for in-flight batches, then release the HTTP client. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        if self._client is not None:
            self._client.close()
