"""HTTP client for the realtime bus arrivals API."""

import logging
import threading
import xml.etree.ElementTree as ET
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .exceptions import FeedError
from .feed_stream import flatten_xml
from .models import RouteInfo, StopInfo

logger = logging.getLogger(__name__)

# Minutes of timetable to request from schedulebystop
SCHEDULE_WINDOW_MINUTES = 60


def make_session(retries: int = 3) -> requests.Session:
    """Session that retries transient upstream failures with backoff."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/xml"})
    return session


class FeedClient:
    """Fetches stop schedules, predictions and route/stop listings."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Developer API key.
            base_url: API root, without a trailing slash.
            timeout: Per-request timeout in seconds.
            session: Optional preconfigured session (tests pass a mock). When
                omitted, each thread gets its own retrying session.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = make_session()
        return session

    def fetch_schedule(self, stop_id: str, fixed_time: Optional[int] = None) -> str:
        """
        Fetch the timetable for a stop as flattened feed text.

        Args:
            stop_id: Stop to query.
            fixed_time: Optional epoch to query the timetable at instead of now.

        Returns:
            Flattened feed text rooted at /schedule.

        Raises:
            FeedError: If the request or the XML parse fails.
        """
        params = {"stop": stop_id, "max_time": SCHEDULE_WINDOW_MINUTES}
        if fixed_time is not None:
            params["datetime"] = fixed_time
        return self._flatten(self._get("schedulebystop", params))

    def fetch_predictions(self, stop_id: str) -> Optional[str]:
        """
        Fetch realtime predictions for a stop as flattened feed text.

        Args:
            stop_id: Stop to query.

        Returns:
            Flattened feed text rooted at /predictions, or None if predictions
            are unavailable for any reason.
        """
        try:
            return self._flatten(self._get("predictionsbystop", {"stop": stop_id}))
        except FeedError as e:
            logger.warning(f"Predictions unavailable for stop {stop_id}: {e}")
            return None

    def list_routes(self) -> List[RouteInfo]:
        """List every route the API knows about."""
        return self._parse_routes(self._get("routes", {}))

    def list_routes_for_stop(self, stop_id: str) -> List[RouteInfo]:
        """List the routes serving one stop."""
        return self._parse_routes(self._get("routesbystop", {"stop": stop_id}))

    def list_stops(self, route_id: str) -> List[StopInfo]:
        """List the stops of a route, both directions, in stop order."""
        root = self._parse(self._get("stopsbyroute", {"route": route_id}))
        stops: List[StopInfo] = []
        for direction in root.iter("direction"):
            direction_name = direction.get("direction_name", "")
            for stop in direction.iter("stop"):
                stops.append(
                    StopInfo(
                        stop_id=stop.get("stop_id", ""),
                        stop_name=stop.get("stop_name", ""),
                        direction=direction_name,
                        stop_order=_int_or_zero(stop.get("stop_order")),
                    )
                )
        logger.debug(f"Parsed {len(stops)} stops for route {route_id}")
        return stops

    def _get(self, endpoint: str, params: dict) -> bytes:
        """
        GET one API endpoint in XML format.

        Returns:
            Raw response body.

        Raises:
            FeedError: On network errors or a non-2xx status.
        """
        url = f"{self.base_url}/{endpoint}"
        query = dict(params, api_key=self.api_key, format="xml")
        logger.debug(f"Fetching {url} {params}")
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            # Keep the API key out of the message
            raise FeedError(f"{endpoint} request failed: {_redact(str(e), self.api_key)}") from e
        return response.content

    def _parse_routes(self, body: bytes) -> List[RouteInfo]:
        root = self._parse(body)
        routes: List[RouteInfo] = []
        for mode in root.iter("mode"):
            mode_name = mode.get("mode_name", "")
            for route in mode.iter("route"):
                routes.append(
                    RouteInfo(
                        route_id=route.get("route_id", ""),
                        route_name=route.get("route_name", ""),
                        mode_name=mode_name,
                    )
                )
        return routes

    @staticmethod
    def _flatten(body: bytes) -> str:
        try:
            return flatten_xml(body)
        except ET.ParseError as e:
            logger.error(f"Failed to parse API response: {e}")
            raise FeedError(f"Malformed XML from API: {e}") from e

    @staticmethod
    def _parse(body: bytes) -> ET.Element:
        try:
            return ET.fromstring(body)
        except ET.ParseError as e:
            logger.error(f"Failed to parse API response: {e}")
            raise FeedError(f"Malformed XML from API: {e}") from e


def _redact(text: str, secret: str) -> str:
    return text.replace(secret, "***") if secret else text


def _int_or_zero(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
