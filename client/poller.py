# client/poller.py
"""
Polls a Server Temperature Monitor and renders a one-line status,
`Server: 45.0°C`, the way the host page widget shows it.
"""
import argparse
import logging
import math
import os
import threading
import time
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get("SERVER_TEMP_URL", "http://localhost:8080")
DEFAULT_PLUGIN_HEADER = os.environ.get("SERVER_TEMP_PLUGIN_HEADER", "ServerTempPlugin")
DEFAULT_INTERVAL_S = float(os.environ.get("SERVER_TEMP_POLL_INTERVAL_S", 10 * 60))
DEFAULT_INITIAL_DELAY_S = 1.0
API_PATH = "/server_temp"
LOADING_TEXT = "Server: Loading..."

# Page text the host shows to users allowed to control it
PRIVILEGED_MARKERS = (
    "You are logged in as an administrator.",
    "You are logged in as an adminstrator.",
    "You are logged in and can control the receiver.",
)


class ClientFetchError(Exception):
    """Network, status or JSON problem while fetching the reading."""


def format_temperature(value: float, unit: Optional[str] = None) -> str:
    return f"Server: {value:.1f}°{unit or 'C'}"


def is_privileged(page_text: str) -> bool:
    return any(marker in (page_text or "") for marker in PRIVILEGED_MARKERS)


@dataclass
class TemperatureDisplay:
    """The rendered status element."""
    text: str = LOADING_TEXT
    title: str = ""
    visible: bool = True


class ServerTempPoller:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        plugin_header: str = DEFAULT_PLUGIN_HEADER,
        interval_s: float = DEFAULT_INTERVAL_S,
        initial_delay_s: float = DEFAULT_INITIAL_DELAY_S,
        admin_only: bool = False,
        session: Optional[requests.Session] = None,
        timeout_s: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.plugin_header = plugin_header
        self.interval_s = interval_s
        self.initial_delay_s = initial_delay_s
        self.admin_only = admin_only
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

        self.privileged = False
        self.display: Optional[TemperatureDisplay] = None  # created on first update

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def check_privileged(self) -> bool:
        """Look for the host's logged-in markers on its landing page."""
        try:
            resp = self.session.get(self.base_url + "/", timeout=self.timeout_s)
            self.privileged = is_privileged(resp.text)
        except requests.RequestException as e:
            logger.warning("Could not load host page for admin check: %s", e)
            self.privileged = False
        return self.privileged

    def fetch_temperature(self) -> dict:
        url = f"{self.base_url}{API_PATH}"
        try:
            resp = self.session.get(
                url,
                params={"t": int(time.time() * 1000)},  # cache-buster
                headers={"X-Plugin-Name": self.plugin_header},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise ClientFetchError(str(e)) from e
        if not resp.ok:
            raise ClientFetchError("Failed to fetch temperature")
        try:
            data = resp.json()
        except ValueError as e:
            raise ClientFetchError(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ClientFetchError("Invalid JSON: expected an object")
        return data

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _gated(self) -> bool:
        return self.admin_only and not self.privileged

    def update_display(self, temperature, unit: Optional[str], error: Optional[str]) -> Optional[TemperatureDisplay]:
        if self._gated():
            return None
        if self.display is None:
            self.display = TemperatureDisplay()
        display = self.display

        if isinstance(temperature, (int, float)) and not isinstance(temperature, bool) \
                and not math.isnan(temperature):
            display.text = format_temperature(float(temperature), unit)
            display.visible = True
            display.title = f"Last updated: {time.strftime('%H:%M:%S')}"
            logger.info("Temperature display updated: %s", display.text)
        else:
            display.text = ""
            display.visible = True
            if error:
                display.title = f"Error: {error}"
        return display

    def poll_once(self) -> Optional[TemperatureDisplay]:
        try:
            data = self.fetch_temperature()
        except ClientFetchError as e:
            logger.warning("Failed to fetch temperature: %s", e)
            return self.update_display(None, None, str(e))
        return self.update_display(data.get("temperature"), data.get("unit"), data.get("error"))

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def run(self, stop: Optional[threading.Event] = None) -> None:
        """Poll after the initial delay, then every interval, until `stop` is set."""
        stop = stop or threading.Event()
        if self.admin_only:
            self.check_privileged()
        if stop.wait(self.initial_delay_s):
            return
        while True:
            display = self.poll_once()
            if display is not None:
                print(display.text or f"({display.title or 'no reading'})", flush=True)
            if stop.wait(self.interval_s):
                return


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Poll a Server Temperature Monitor")
    ap.add_argument("--url", default=DEFAULT_BASE_URL, help="base URL of the server")
    ap.add_argument("--plugin-header", default=DEFAULT_PLUGIN_HEADER)
    ap.add_argument("--interval", type=float, default=DEFAULT_INTERVAL_S, help="seconds between polls")
    ap.add_argument("--initial-delay", type=float, default=DEFAULT_INITIAL_DELAY_S)
    ap.add_argument("--admin-only", action="store_true",
                    help="only render when the host page shows a logged-in administrator")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    poller = ServerTempPoller(
        base_url=args.url,
        plugin_header=args.plugin_header,
        interval_s=args.interval,
        initial_delay_s=args.initial_delay,
        admin_only=args.admin_only,
    )
    logger.info("Client-side temperature monitor initialised")
    try:
        poller.run()
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
