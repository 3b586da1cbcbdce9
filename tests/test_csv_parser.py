"""
Tests for the CSV tokenizer and row helpers.
"""

import csv

from scm_dashboard.ingest import csv_parser
from scm_dashboard.ingest.csv_parser import parse_csv
from scm_dashboard.ingest.fields import (
    first_value,
    missing_headers,
    normalize_headers,
    parse_number,
    row_to_record,
)


class TestParseCSV:
    """Tests for parse_csv."""

    def test_simple_rows(self):
        rows = parse_csv('a,b,c\n1,2,3\n')
        assert rows == [['a', 'b', 'c'], ['1', '2', '3']]

    def test_empty_text(self):
        assert parse_csv('') == []
        assert parse_csv(None) == []

    def test_quoted_delimiter_and_escaped_quote(self):
        rows = parse_csv('name,notes\n"Smith, J","He said ""rush"""\n')
        assert rows[1] == ['Smith, J', 'He said "rush"']

    def test_newline_inside_quoted_field(self):
        rows = parse_csv('id,notes\n1,"line one\nline two"\n2,x\n')
        assert len(rows) == 3
        assert rows[1][1] == 'line one\nline two'

    def test_line_endings(self):
        """CRLF, LF and CR line endings all split rows."""
        assert parse_csv('a,b\r\n1,2\r\n') == [['a', 'b'], ['1', '2']]
        assert parse_csv('a,b\r1,2') == [['a', 'b'], ['1', '2']]

    def test_blank_lines_dropped(self):
        rows = parse_csv('a,b\n\n1,2\n   \n3,4\n')
        assert rows == [['a', 'b'], ['1', '2'], ['3', '4']]

    def test_bom_stripped(self):
        rows = parse_csv('\ufeffOrderID,ClientName\nBM-1,Acme\n')
        assert rows[0][0] == 'OrderID'

    def test_stray_quote_in_unquoted_field_is_literal(self):
        rows = parse_csv('a,b"c,d\n')
        assert rows == [['a', 'b"c', 'd']]

    def test_text_after_closing_quote_is_appended(self):
        rows = parse_csv('"ab"cd,e\n')
        assert rows == [['abcd', 'e']]

    def test_unterminated_quote_runs_to_end(self):
        rows = parse_csv('a,"b\nc')
        assert rows == [['a', 'b\nc']]

    def test_final_line_without_newline(self):
        assert parse_csv('a,b\n1,2') == [['a', 'b'], ['1', '2']]

    def test_short_rows_kept(self):
        rows = parse_csv('a,b,c\n1\n')
        assert rows[1] == ['1']

    def test_custom_delimiter(self):
        rows = parse_csv('a;b\n1;2\n', delimiter=';')
        assert rows == [['a', 'b'], ['1', '2']]

    def test_field_longer_than_default_reader_limit(self):
        long_value = 'x' * 200_000
        rows = parse_csv('a,b\n1,"' + long_value + '"\n2,ok\n3,ok\n')

        assert len(rows) == 4
        assert rows[1] == ['1', long_value]
        assert rows[3] == ['3', 'ok']

    def test_reader_failure_is_reported(self, monkeypatch):
        class FailingReader:
            line_num = 2

            def __init__(self, *args, **kwargs):
                pass

            def __iter__(self):
                yield ['a', 'b']
                raise csv.Error('field larger than field limit')

        monkeypatch.setattr(csv_parser.csv, 'reader', FailingReader)
        errors = []

        rows = parse_csv('a,b\n1,2\n', errors=errors, label='Order Data CSV')

        assert rows == [['a', 'b']]
        assert len(errors) == 1
        assert errors[0].startswith('Order Data CSV: parsing stopped at line 2')


class TestRowHelpers:
    """Tests for record mapping and cell parsing."""

    def test_row_to_record_short_row(self):
        record = row_to_record(['OrderID', 'ClientName', 'OrderDate'], ['BM-1', '  Acme  '])
        assert record == {'OrderID': 'BM-1', 'ClientName': 'Acme', 'OrderDate': None}

    def test_row_to_record_empty_cells_are_none(self):
        record = row_to_record(['a', 'b'], ['', '   '])
        assert record == {'a': None, 'b': None}

    def test_normalize_headers(self):
        assert normalize_headers([' OrderID ', '\ufeffClientName']) == ['OrderID', 'ClientName']

    def test_missing_headers_in_required_order(self):
        missing = missing_headers(['OrderID'], ['OrderID', 'ClientName', 'TotalFinalPrice'])
        assert missing == ['ClientName', 'TotalFinalPrice']

    def test_first_value(self):
        record = {'A': None, 'B': '12', 'C': '13'}
        assert first_value(record, ['A', 'B', 'C']) == '12'
        assert first_value(record, ['X']) is None

    def test_parse_number(self):
        assert parse_number('1000') == 1000.0
        assert parse_number('$1,200.50') == 1200.5
        assert parse_number(' 42 ') == 42.0
        assert parse_number('-3') == -3.0

    def test_parse_number_invalid(self):
        assert parse_number(None) is None
        assert parse_number('') is None
        assert parse_number('abc') is None
        assert parse_number('N/A') is None
        assert parse_number('nan') is None
