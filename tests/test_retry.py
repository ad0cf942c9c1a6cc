"""Testes unitários para o módulo _retry."""

from unittest.mock import Mock, patch

import pytest
from gspread.exceptions import SpreadsheetNotFound, WorksheetNotFound

from sgg.gateway._retry import (
    NON_RETRYABLE_EXCEPTIONS,
    api_status_code,
    configure_rate_limiting,
    is_quota_error,
    retry,
)


class TestRetry:
    """Testes para a função retry."""

    def test_retry_success_first_attempt(self):
        """Deve retornar sucesso na primeira tentativa."""
        mock_func = Mock(return_value="success")
        result = retry(mock_func)

        assert result == "success"
        assert mock_func.call_count == 1

    @patch("sgg.gateway._retry.time.sleep")
    def test_retry_success_after_failures(self, mock_sleep):
        """Deve tentar de novo e eventualmente ter sucesso."""
        mock_func = Mock(side_effect=[Exception("erro 1"), Exception("erro 2"), "success"])

        result = retry(mock_func, tries=5, delay=0.01, backoff=1.0)

        assert result == "success"
        assert mock_func.call_count == 3

    @patch("sgg.gateway._retry.time.sleep")
    def test_retry_max_attempts_exceeded(self, mock_sleep):
        """Deve falhar após atingir o máximo de tentativas."""
        mock_func = Mock(side_effect=Exception("persistent error"))

        with pytest.raises(Exception, match="persistent error"):
            retry(mock_func, tries=3, delay=0.01, backoff=1.0)

        assert mock_func.call_count == 3

    @patch("sgg.gateway._retry.time.sleep")
    def test_retry_backoff_delays(self, mock_sleep):
        """Deve aplicar backoff exponencial entre tentativas."""
        mock_func = Mock(side_effect=[Exception("erro 1"), Exception("erro 2"), "success"])

        retry(mock_func, tries=5, delay=0.1, backoff=2.0)

        delays = [c.args[0] for c in mock_sleep.call_args_list]
        assert delays == pytest.approx([0.1, 0.2])

    @pytest.mark.parametrize("error", [
        WorksheetNotFound("test_sheet"),
        SpreadsheetNotFound("test_id"),
        ValueError("invalid value"),
        KeyError("missing_key"),
        TypeError("wrong type"),
        PermissionError("not shared"),
    ])
    def test_retry_no_retry_on_logic_errors(self, error):
        """Não deve repetir erros lógicos."""
        mock_func = Mock(side_effect=error)

        with pytest.raises(type(error)):
            retry(mock_func, tries=5, delay=0.01)

        assert mock_func.call_count == 1

    def test_retry_no_retry_on_quota_error(self, make_api_error):
        """Erros de cota vão direto para a rotação de chaves."""
        mock_func = Mock(side_effect=make_api_error(429, "Quota exceeded for quota metric"))

        with pytest.raises(Exception):
            retry(mock_func, tries=5, delay=0.01)

        assert mock_func.call_count == 1

    def test_retry_no_retry_on_client_error(self, make_api_error):
        """Erros 4xx não mudam com uma nova tentativa."""
        mock_func = Mock(side_effect=make_api_error(400, "Unable to parse range: 'X'!A:C"))

        with pytest.raises(Exception, match="Unable to parse range"):
            retry(mock_func, tries=5, delay=0.01)

        assert mock_func.call_count == 1

    @patch("sgg.gateway._retry.time.sleep")
    def test_retry_on_server_error(self, mock_sleep, make_api_error):
        """Erros 5xx são transitórios e devem ser repetidos."""
        mock_func = Mock(side_effect=[make_api_error(503, "Backend error"), "ok"])

        assert retry(mock_func, tries=3, delay=0.01) == "ok"
        assert mock_func.call_count == 2

    def test_all_non_retryable_exceptions(self):
        """Deve ter todas as exceções não-retryáveis definidas."""
        assert WorksheetNotFound in NON_RETRYABLE_EXCEPTIONS
        assert SpreadsheetNotFound in NON_RETRYABLE_EXCEPTIONS
        assert ValueError in NON_RETRYABLE_EXCEPTIONS
        assert KeyError in NON_RETRYABLE_EXCEPTIONS
        assert TypeError in NON_RETRYABLE_EXCEPTIONS
        assert PermissionError in NON_RETRYABLE_EXCEPTIONS


class TestQuotaDetection:
    """Testes para is_quota_error e api_status_code."""

    def test_status_429_is_quota(self, make_api_error):
        assert is_quota_error(make_api_error(429, "Too many requests"))

    @pytest.mark.parametrize("message", [
        "Quota exceeded for quota metric 'Read requests'",
        "Read requests per minute per user",
        "quotaExceeded",
        "RATE_LIMIT_EXCEEDED",
    ])
    def test_quota_markers_in_message(self, message):
        """Mensagens de cota são reconhecidas sem depender do status."""
        assert is_quota_error(RuntimeError(message))

    def test_other_errors_are_not_quota(self, make_api_error):
        assert not is_quota_error(make_api_error(500, "Internal error"))
        assert not is_quota_error(ValueError("bad"))

    def test_api_status_code(self, make_api_error):
        assert api_status_code(make_api_error(404, "Requested entity was not found.")) == 404
        assert api_status_code(RuntimeError("x")) is None


class TestRateLimiting:
    """Testes para rate limiting."""

    @patch("sgg.gateway._retry._last_request_time", 0.0)
    @patch("sgg.gateway._retry.time.sleep")
    @patch("sgg.gateway._retry.time.time")
    def test_rate_limit_spaces_calls(self, mock_time, mock_sleep):
        """Chamadas seguidas devem respeitar o intervalo mínimo."""
        configure_rate_limiting(1.0, 0.0)
        mock_time.return_value = 100.0

        retry(Mock(return_value="a"))
        retry(Mock(return_value="b"))

        # A primeira chamada já estava liberada; a segunda espera o intervalo
        waits = [c.args[0] for c in mock_sleep.call_args_list]
        assert waits[-1] == pytest.approx(1.0)

    @patch("sgg.gateway._retry.time.sleep")
    def test_rate_limit_disabled(self, mock_sleep):
        """Sem rate limiting não há espera."""
        configure_rate_limiting(0.0, 0.0)

        retry(Mock(return_value="a"))
        retry(Mock(return_value="b"))

        mock_sleep.assert_not_called()
