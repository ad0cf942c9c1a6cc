"""Testes unitários para o módulo config."""
import pytest
import os
from unittest.mock import patch

from sgg.config import Config


class TestConfig:
    """Testes para a classe Config."""

    def test_config_defaults(self):
        """Sem variáveis de ambiente, usa os valores padrão."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.service_account_keys == ()
        assert config.key_cooldown_seconds == 120.0
        assert config.request_timeout_seconds == 15.0
        assert config.row_claim_ttl_seconds == 5.0
        assert config.queue_entry_ttl_seconds == 300.0
        assert config.used_value_ttl_seconds == 3600.0
        assert config.queue_busy_threshold == 5
        assert config.rate_limit_seconds == 0.0
        assert config.cors_origins == ('*',)
        assert config.host == '0.0.0.0'
        assert config.port == 8000
        assert config.log_level == 'INFO'

    def test_config_with_env_variables(self):
        """Deve carregar configurações das variáveis de ambiente."""
        with patch.dict(os.environ, {
            'GOOGLE_SERVICE_ACCOUNT_KEY': '{"a": 1}',
            'GOOGLE_SERVICE_ACCOUNT_KEY_2': '{"b": 2}',
            'KEY_COOLDOWN_SECONDS': '300',
            'QUEUE_BUSY_THRESHOLD': '10',
            'CORS_ORIGINS': 'https://a.example, https://b.example',
            'PORT': '9000',
            'LOG_LEVEL': 'debug',
        }, clear=True):
            config = Config()

        assert config.service_account_keys == ('{"a": 1}', '{"b": 2}')
        assert config.key_cooldown_seconds == 300.0
        assert config.queue_busy_threshold == 10
        assert config.cors_origins == ('https://a.example', 'https://b.example')
        assert config.port == 9000
        assert config.log_level == 'DEBUG'

    def test_config_with_direct_values(self):
        """Valores diretos têm prioridade sobre variáveis de ambiente."""
        with patch.dict(os.environ, {'KEY_COOLDOWN_SECONDS': '300'}, clear=True):
            config = Config(
                service_account_keys=('{"a": 1}', ''),
                key_cooldown_seconds=10,
                cors_origins=('https://a.example',),
            )

        assert config.service_account_keys == ('{"a": 1}',)
        assert config.key_cooldown_seconds == 10
        assert config.cors_origins == ('https://a.example',)

    def test_config_invalid_number_raises_error(self):
        """Deve lançar erro se uma variável numérica não for um número."""
        with patch.dict(os.environ, {'REQUEST_TIMEOUT_SECONDS': 'abc'}, clear=True):
            with pytest.raises(ValueError, match="REQUEST_TIMEOUT_SECONDS"):
                Config()

    def test_config_negative_env_raises_error(self):
        with patch.dict(os.environ, {'ROW_CLAIM_TTL_SECONDS': '-1'}, clear=True):
            with pytest.raises(ValueError, match="ROW_CLAIM_TTL_SECONDS"):
                Config()

    def test_config_negative_direct_value_raises_error(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="request_timeout_seconds"):
                Config(request_timeout_seconds=-5)

    def test_config_is_frozen(self):
        """Config é imutável depois de criada."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        with pytest.raises(AttributeError):
            config.port = 1
