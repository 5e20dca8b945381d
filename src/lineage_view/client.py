"""
Lineage API client.

Fetches lineage graphs and impact analyses from the backend over HTTP.
Every call returns an ``Ok``/``Err`` result; transport failures are retried
a bounded number of times and never escape as exceptions.
"""

import json
import logging
import time
from typing import Any, Dict, Optional
from urllib import error, parse, request

from pydantic import ValidationError

from .config import Settings
from .core.exceptions import FetchError
from .core.result import Err, Ok, Result
from .core.types import Direction, ImpactResult, LineageGraphResponse

logger = logging.getLogger(__name__)

RETRY_BACKOFF_SECONDS = 0.25


class LineageApiClient:
    """
    HTTP client for the lineage backend.

    Endpoints:
    - GET  /api/lineage/graph[/{root_id}]?direction=&max_depth=
    - POST /api/lineage/impact/{node_id}?max_depth=
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def graph_url(
        self,
        root_id: Optional[str] = None,
        direction: Optional[Direction | str] = None,
        max_depth: Optional[int] = None,
    ) -> str:
        base = self.settings.api_url.rstrip("/")
        if not root_id:
            return f"{base}/api/lineage/graph"

        params: Dict[str, str] = {}
        if direction:
            params["direction"] = Direction(direction).value
        if max_depth is not None:
            params["max_depth"] = str(max_depth)
        url = f"{base}/api/lineage/graph/{parse.quote(root_id, safe='')}"
        return f"{url}?{parse.urlencode(params)}" if params else url

    def impact_url(self, node_id: str, max_depth: Optional[int] = None) -> str:
        base = self.settings.api_url.rstrip("/")
        url = f"{base}/api/lineage/impact/{parse.quote(node_id, safe='')}"
        if max_depth is not None:
            url = f"{url}?{parse.urlencode({'max_depth': str(max_depth)})}"
        return url

    def fetch_graph(
        self,
        root_id: Optional[str] = None,
        direction: Optional[Direction | str] = None,
        max_depth: Optional[int] = None,
    ) -> Result[LineageGraphResponse, FetchError]:
        """Fetch the full graph, or the subgraph around ``root_id``."""
        url = self.graph_url(root_id, direction, max_depth if max_depth is not None else self.settings.max_depth)
        payload = self._request_json(url, method="GET")
        if payload.is_err():
            return payload
        # Bad records are dropped one by one; only a non-object body fails the fetch
        try:
            return Ok(LineageGraphResponse.from_payload(payload.unwrap()))
        except ValueError as e:
            return Err(FetchError(url, f"Malformed lineage graph payload: {e}"))

    def fetch_impact(
        self,
        node_id: str,
        max_depth: Optional[int] = None,
    ) -> Result[ImpactResult, FetchError]:
        """Run impact analysis rooted at ``node_id``."""
        url = self.impact_url(node_id, max_depth)
        payload = self._request_json(url, method="POST")
        if payload.is_err():
            return payload
        try:
            return Ok(ImpactResult.model_validate(payload.unwrap()))
        except ValidationError as e:
            return Err(FetchError(url, f"Malformed impact payload: {e}"))

    def _request_json(self, url: str, method: str) -> Result[Any, FetchError]:
        attempts = max(1, self.settings.retries + 1)
        last_error: Optional[FetchError] = None

        for attempt in range(1, attempts + 1):
            req = request.Request(url, method=method, headers={"Accept": "application/json"})
            try:
                with request.urlopen(req, timeout=self.settings.timeout) as response:
                    body = response.read().decode("utf-8")
                return Ok(json.loads(body))
            except error.HTTPError as e:
                last_error = FetchError(url, e.reason or "HTTP error", status=e.code)
                # Client errors will not succeed on retry
                if 400 <= e.code < 500:
                    break
            except (error.URLError, TimeoutError, OSError) as e:
                last_error = FetchError(url, str(getattr(e, "reason", e)))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                last_error = FetchError(url, f"Invalid JSON response: {e}")
                break

            if attempt < attempts:
                logger.debug(f"Retrying {method} {url} after: {last_error}")
                time.sleep(RETRY_BACKOFF_SECONDS * attempt)

        logger.error(f"{method} {url} failed: {last_error}")
        return Err(last_error)
