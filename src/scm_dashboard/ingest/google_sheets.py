"""
Google Sheets CSV export fetching.

A sheet shared with "Anyone with the link can view" can be downloaded as CSV
from ``/spreadsheets/d/<id>/export?format=csv&gid=<gid>``. Private sheets
redirect to a login page, which shows up as an HTML response; this is
reported as a SheetFetchError instead of being parsed as CSV.

Usage:
    fetcher = SheetFetcher(timeout=30)
    order_csv, supplier_csv = fetcher.fetch_pair(order_url, supplier_url)
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

_SHEET_ID_RE = re.compile(r'spreadsheets/d/([a-zA-Z0-9\-_]+)')
_GID_RE = re.compile(r'[#&?]gid=([0-9]+)')


class SheetFetchError(Exception):
    """A sheet export could not be downloaded as CSV."""


def get_export_url(share_url: str) -> Optional[str]:
    """
    Rewrite a Google Sheets share/edit URL into its CSV export URL.

    Export and "publish to web" CSV links are returned unchanged. The tab is
    taken from ``gid`` (default 0, the first tab).

    Returns:
        Export URL, or None if no spreadsheet ID is present
    """
    if not share_url:
        return None

    if '/export?format=csv' in share_url or 'pub?output=csv' in share_url:
        return share_url

    sheet_match = _SHEET_ID_RE.search(share_url)
    if not sheet_match:
        return None

    gid_match = _GID_RE.search(share_url)
    gid = gid_match.group(1) if gid_match else '0'
    return f"https://docs.google.com/spreadsheets/d/{sheet_match.group(1)}/export?format=csv&gid={gid}"


class SheetFetcher:
    """
    Downloads sheet exports over HTTP.

    Args:
        timeout: Per-request timeout in seconds
        session: Optional requests.Session to reuse
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_csv(self, url: str, name: str = 'Sheet') -> str:
        """
        Download one sheet as CSV text.

        Args:
            url: Share URL or export URL
            name: Label used in error messages ("Order Sheet", ...)

        Raises:
            SheetFetchError: Invalid URL, non-2xx status, non-CSV content
                or a transport failure
        """
        export_url = get_export_url(url)
        if export_url is None:
            raise SheetFetchError(f"{name}: Could not derive a CSV export URL from '{url}'.")

        logger.info(f"Fetching {name} from {export_url}")
        try:
            response = self.session.get(
                export_url,
                headers={'Cache-Control': 'no-cache'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SheetFetchError(
                f"{name}: Request failed ({e}). Check your internet connection "
                f"and the sheet sharing settings."
            ) from e

        if not response.ok:
            reason = response.reason or 'Request Failed'
            raise SheetFetchError(
                f"{name} ({response.status_code}): {reason}. Ensure the Google Sheet "
                f"is public ('Anyone with the link can view')."
            )

        content_type = response.headers.get('content-type', '')
        if 'text/csv' not in content_type:
            raise SheetFetchError(
                f"{name}: Expected CSV content, but received '{content_type or 'unknown'}'. "
                f"This often happens if the sheet is private, causing a redirect to a login page."
            )

        # Sheets exports are UTF-8 even when the header omits the charset
        response.encoding = 'utf-8'
        text = response.text
        logger.info(f"Fetched {name}: {len(text):,} characters")
        return text

    def fetch_pair(self, order_url: str, supplier_url: str) -> Tuple[str, str]:
        """
        Download the Order and Supplier sheets concurrently.

        Both requests run to completion; the first failure is raised.

        Returns:
            (order_csv, supplier_csv)

        Raises:
            SheetFetchError: If either download fails
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            order_future = executor.submit(self.fetch_csv, order_url, 'Order Sheet')
            supplier_future = executor.submit(self.fetch_csv, supplier_url, 'Supplier Sheet')
            order_csv = order_future.result()
            supplier_csv = supplier_future.result()

        if not order_csv.strip() or not supplier_csv.strip():
            raise SheetFetchError("One or both Google Sheets returned empty data.")
        return order_csv, supplier_csv

    def close(self) -> None:
        self.session.close()
