"""
Tests for Google Sheets export URL handling and fetching.

HTTP is mocked; no network access is needed.
"""

from unittest.mock import Mock

import pytest
import requests

from scm_dashboard.ingest.google_sheets import SheetFetcher, SheetFetchError, get_export_url

SHEET_ID = '1BYyNlSrCrXpxVDphyIzO3xtjcJkPjABD8QsnH_yqtT0'
ORDER_URL = f'https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit?gid=111#gid=111'
SUPPLIER_URL = f'https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit#gid=222'


def _response(text='OrderID\nBM-1\n', status_code=200, content_type='text/csv; charset=utf-8', reason='OK'):
    response = Mock()
    response.ok = 200 <= status_code < 400
    response.status_code = status_code
    response.reason = reason
    response.headers = {'content-type': content_type}
    response.text = text
    return response


class TestGetExportUrl:
    """Tests for share URL rewriting."""

    def test_edit_url_with_gid(self):
        assert get_export_url(ORDER_URL) == (
            f'https://docs.google.com/spreadsheets/d/{SHEET_ID}/export?format=csv&gid=111'
        )

    def test_fragment_gid(self):
        assert get_export_url(SUPPLIER_URL).endswith('export?format=csv&gid=222')

    def test_default_gid(self):
        url = f'https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit'
        assert get_export_url(url).endswith('&gid=0')

    def test_export_urls_pass_through(self):
        export = f'https://docs.google.com/spreadsheets/d/{SHEET_ID}/export?format=csv&gid=5'
        published = 'https://docs.google.com/spreadsheets/d/e/2PACX-abc/pub?output=csv'
        assert get_export_url(export) == export
        assert get_export_url(published) == published

    def test_not_a_sheet(self):
        assert get_export_url('https://example.com/data.csv') is None
        assert get_export_url('') is None


class TestSheetFetcher:
    """Tests for SheetFetcher."""

    def test_fetch_csv(self):
        session = Mock()
        session.get.return_value = _response()
        fetcher = SheetFetcher(timeout=5, session=session)

        text = fetcher.fetch_csv(ORDER_URL, 'Order Sheet')

        assert text == 'OrderID\nBM-1\n'
        args, kwargs = session.get.call_args
        assert args[0].endswith('gid=111')
        assert kwargs['timeout'] == 5
        assert kwargs['headers'] == {'Cache-Control': 'no-cache'}

    def test_invalid_url(self):
        fetcher = SheetFetcher(session=Mock())
        with pytest.raises(SheetFetchError, match='Could not derive a CSV export URL'):
            fetcher.fetch_csv('https://example.com', 'Order Sheet')

    def test_http_error(self):
        session = Mock()
        session.get.return_value = _response(status_code=404, reason='Not Found')
        fetcher = SheetFetcher(session=session)

        with pytest.raises(SheetFetchError) as exc_info:
            fetcher.fetch_csv(ORDER_URL, 'Order Sheet')

        message = str(exc_info.value)
        assert 'Order Sheet (404): Not Found' in message
        assert 'Anyone with the link can view' in message

    def test_html_response_is_rejected(self):
        session = Mock()
        session.get.return_value = _response(text='<html>login</html>', content_type='text/html')
        fetcher = SheetFetcher(session=session)

        with pytest.raises(SheetFetchError, match='Expected CSV content'):
            fetcher.fetch_csv(ORDER_URL, 'Order Sheet')

    def test_transport_error(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError('connection refused')
        fetcher = SheetFetcher(session=session)

        with pytest.raises(SheetFetchError, match='Request failed'):
            fetcher.fetch_csv(ORDER_URL, 'Order Sheet')

    def test_fetch_pair(self):
        def get(url, **kwargs):
            return _response(text='order' if url.endswith('gid=111') else 'supplier')

        session = Mock()
        session.get.side_effect = get
        fetcher = SheetFetcher(session=session)

        assert fetcher.fetch_pair(ORDER_URL, SUPPLIER_URL) == ('order', 'supplier')
        assert session.get.call_count == 2

    def test_fetch_pair_empty_sheet(self):
        session = Mock()
        session.get.return_value = _response(text='   ')
        fetcher = SheetFetcher(session=session)

        with pytest.raises(SheetFetchError, match='returned empty data'):
            fetcher.fetch_pair(ORDER_URL, SUPPLIER_URL)

    def test_fetch_pair_propagates_failure(self):
        def get(url, **kwargs):
            if url.endswith('gid=222'):
                return _response(status_code=403, reason='Forbidden')
            return _response()

        session = Mock()
        session.get.side_effect = get
        fetcher = SheetFetcher(session=session)

        with pytest.raises(SheetFetchError, match=r'Supplier Sheet \(403\)'):
            fetcher.fetch_pair(ORDER_URL, SUPPLIER_URL)

    def test_close(self):
        session = Mock()
        SheetFetcher(session=session).close()
        session.close.assert_called_once()
