"""Tests for Swedish number formatting."""

import pytest

from engines.formatting import DECIMAL_COMMA_WARNING, INVALID_NUMBER_WARNING, format_currency, \
    format_number, format_percentage, parse_number_input

NBSP = '\u00a0'


class TestFormat:
    @pytest.mark.parametrize("value, decimals, expected", [
        (0, 0, '0'),
        (999, 0, '999'),
        (1000, 0, f'1{NBSP}000'),
        (60480000, 0, f'60{NBSP}480{NBSP}000'),
        (1234.5, 0, f'1{NBSP}235'),
        (1234.56, 2, f'1{NBSP}234,56'),
        (-1500, 0, f'-1{NBSP}500'),
        (None, 0, '0'),
        (float('nan'), 0, '0'),
    ])
    def test_format_number(self, value, decimals, expected):
        assert format_number(value, decimals) == expected

    def test_currency_and_percentage(self):
        assert format_currency(816480) == f'816{NBSP}480 kr'
        assert format_currency(None) == '0 kr'
        assert format_percentage(12.345) == '12,3%'


class TestParseInput:
    def test_blank(self):
        assert parse_number_input('') == ('', None, None)
        assert parse_number_input(None) == ('', None, None)

    def test_spaces_as_thousands_separator(self):
        assert parse_number_input('1 500 000') == (f'1{NBSP}500{NBSP}000', 1500000, None)

    def test_decimal_comma_warns(self):
        formatted, raw, warning = parse_number_input('1234,5')
        assert raw == 1234.5
        assert formatted == f'1{NBSP}234.5'
        assert warning == DECIMAL_COMMA_WARNING

    def test_integers_only(self):
        assert parse_number_input('12.6', allow_decimals=False)[1] == 13

    def test_non_numeric(self):
        assert parse_number_input('abc') == ('', None, INVALID_NUMBER_WARNING)

    def test_numbers_pass_through(self):
        assert parse_number_input(42)[1] == 42
