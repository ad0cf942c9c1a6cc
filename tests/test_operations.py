"""
Testes unitários para o módulo operations.
"""
from unittest.mock import Mock

from sgg.gateway.operations import (
    get_values,
    is_missing_range_error,
    list_sheet_titles,
    sheet_range,
    update_values,
)


class TestSheetRange:
    """Testes para sheet_range."""

    def test_sheet_range_with_cells(self):
        assert sheet_range("ACCOUNT", "A:C") == "'ACCOUNT'!A:C"

    def test_sheet_range_whole_tab(self):
        assert sheet_range("My Sheet") == "'My Sheet'"

    def test_sheet_range_escapes_quotes(self):
        """Aspas simples no nome da aba são duplicadas."""
        assert sheet_range("Bob's", "A1:Z10") == "'Bob''s'!A1:Z10"


class TestGetValues:
    """Testes para get_values."""

    def test_get_values_success(self):
        """Deve retornar a grade lida."""
        mock_spreadsheet = Mock()
        mock_spreadsheet.values_get.return_value = {
            "range": "'WEB'!A1:C3",
            "values": [["ID", "May1"], ["FUN_OTP", 42]],
        }

        result = get_values(mock_spreadsheet, "'WEB'!A:C")

        assert result == [["ID", "May1"], ["FUN_OTP", "42"]]
        mock_spreadsheet.values_get.assert_called_once_with("'WEB'!A:C")

    def test_get_values_empty_range(self):
        """Intervalo sem valores retorna lista vazia."""
        mock_spreadsheet = Mock()
        mock_spreadsheet.values_get.return_value = {"range": "'WEB'!A:C"}

        assert get_values(mock_spreadsheet, "'WEB'!A:C") == []


class TestUpdateValues:
    """Testes para update_values."""

    def test_update_values_raw(self):
        """Deve escrever sem interpretação de valores."""
        mock_spreadsheet = Mock()

        update_values(mock_spreadsheet, "'ACCOUNT'!C2", [["used"]])

        mock_spreadsheet.values_update.assert_called_once_with(
            "'ACCOUNT'!C2",
            params={"valueInputOption": "RAW"},
            body={"values": [["used"]]},
        )


class TestListSheetTitles:
    """Testes para list_sheet_titles."""

    def test_list_sheet_titles(self):
        first = Mock()
        first.title = "WEB"
        second = Mock()
        second.title = "ACCOUNT"
        mock_spreadsheet = Mock()
        mock_spreadsheet.worksheets.return_value = [first, second]

        assert list_sheet_titles(mock_spreadsheet) == ["WEB", "ACCOUNT"]


class TestIsMissingRangeError:
    """Testes para is_missing_range_error."""

    def test_unable_to_parse_range(self, make_api_error):
        assert is_missing_range_error(make_api_error(400, "Unable to parse range: 'NOPE'"))

    def test_other_errors(self, make_api_error):
        assert not is_missing_range_error(make_api_error(500, "Internal error"))
