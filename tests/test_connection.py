"""Testes unitários para o módulo connection."""

from unittest.mock import Mock, patch

import pytest
from gspread.exceptions import APIError, SpreadsheetNotFound

from sgg.gateway.connection import (
    connect_service_account,
    is_stale_spreadsheet_error,
    open_spreadsheet,
    use_spreadsheet,
)


class TestOpenSpreadsheet:
    """Testes para open_spreadsheet."""

    def test_open_spreadsheet_success(self):
        """Deve obter a planilha com sucesso."""
        mock_client = Mock()
        mock_spreadsheet = Mock()
        mock_client.open_by_key.return_value = mock_spreadsheet

        result = open_spreadsheet(mock_client, "test_sheet_id")

        assert result == mock_spreadsheet
        mock_client.open_by_key.assert_called_once_with("test_sheet_id")

    def test_open_spreadsheet_is_cached_per_client(self):
        """A mesma planilha não deve ser aberta duas vezes pelo mesmo cliente."""
        first_client = Mock()
        second_client = Mock()

        open_spreadsheet(first_client, "sheet")
        open_spreadsheet(first_client, "sheet")
        open_spreadsheet(second_client, "sheet")

        assert first_client.open_by_key.call_count == 1
        assert second_client.open_by_key.call_count == 1

    def test_open_spreadsheet_not_found(self):
        """Deve lançar SpreadsheetNotFound se a planilha não existir."""
        mock_client = Mock()
        mock_client.open_by_key.side_effect = SpreadsheetNotFound("Spreadsheet not found")

        with pytest.raises(SpreadsheetNotFound):
            open_spreadsheet(mock_client, "invalid_sheet_id")

        assert mock_client.open_by_key.call_count == 1

    @patch("sgg.gateway._retry.time.sleep")
    def test_open_spreadsheet_api_error_retries(self, mock_sleep):
        """Deve tentar de novo em caso de erro transitório da API."""
        mock_client = Mock()
        mock_spreadsheet = Mock()
        # Falha 2 vezes, sucesso na 3ª tentativa
        mock_client.open_by_key.side_effect = [
            APIError(Mock(status_code=500)),
            APIError(Mock(status_code=503)),
            mock_spreadsheet,
        ]

        result = open_spreadsheet(mock_client, "test_sheet_id")

        assert result == mock_spreadsheet
        assert mock_client.open_by_key.call_count == 3

    @patch("sgg.gateway._retry.time.sleep")
    def test_open_spreadsheet_not_shared_fails_fast(self, mock_sleep, make_api_error):
        """Planilha não compartilhada com a conta (403) não deve ser repetida."""
        mock_client = Mock()
        error = PermissionError()
        error.__cause__ = make_api_error(403, "The caller does not have permission")
        mock_client.open_by_key.side_effect = error

        with pytest.raises(PermissionError):
            open_spreadsheet(mock_client, "private_sheet_id")

        assert mock_client.open_by_key.call_count == 1
        mock_sleep.assert_not_called()


class TestConnectServiceAccount:
    """Testes para connect_service_account."""

    @patch("sgg.gateway.connection.Credentials.from_service_account_info")
    @patch("sgg.gateway.connection.Client")
    def test_connect_service_account_success(self, mock_client_class, mock_creds):
        """Deve conectar usando as informações da conta de serviço."""
        info = {"client_email": "bot@project.iam.gserviceaccount.com"}
        mock_credentials = Mock()
        mock_creds.return_value = mock_credentials
        mock_client = Mock()
        mock_client_class.return_value = mock_client

        result = connect_service_account(info)

        assert result == mock_client
        mock_creds.assert_called_once_with(
            info, scopes=["https://www.googleapis.com/auth/spreadsheets"]
        )
        mock_client_class.assert_called_once_with(auth=mock_credentials)


class TestUseSpreadsheet:
    """Testes para use_spreadsheet e o descarte do cache."""

    def test_use_spreadsheet_returns_action_result(self):
        mock_client = Mock()
        action = Mock(return_value="ok")

        assert use_spreadsheet(mock_client, "sheet", action) == "ok"
        action.assert_called_once_with(mock_client.open_by_key.return_value)

    @pytest.mark.parametrize("status", [403, 404])
    def test_stale_spreadsheet_is_evicted(self, status, make_api_error):
        """Planilha apagada ou descompartilhada sai do cache e é reaberta na próxima chamada."""
        mock_client = Mock()
        action = Mock(side_effect=[make_api_error(status, "gone"), "ok"])

        with pytest.raises(APIError):
            use_spreadsheet(mock_client, "sheet", action)
        assert use_spreadsheet(mock_client, "sheet", action) == "ok"

        assert mock_client.open_by_key.call_count == 2

    def test_other_errors_keep_cache(self, make_api_error):
        """Erros que não dizem respeito à planilha mantêm o cache."""
        mock_client = Mock()
        action = Mock(side_effect=[make_api_error(400, "Unable to parse range: 'X'"), "ok"])

        with pytest.raises(APIError):
            use_spreadsheet(mock_client, "sheet", action)
        use_spreadsheet(mock_client, "sheet", action)

        assert mock_client.open_by_key.call_count == 1

    def test_is_stale_spreadsheet_error(self, make_api_error):
        assert is_stale_spreadsheet_error(SpreadsheetNotFound("x"))
        assert is_stale_spreadsheet_error(PermissionError())
        assert is_stale_spreadsheet_error(make_api_error(404, "Requested entity was not found."))
        assert not is_stale_spreadsheet_error(make_api_error(500, "Internal error"))
        assert not is_stale_spreadsheet_error(RuntimeError("x"))
