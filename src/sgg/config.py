from dataclasses import dataclass
import os

from dotenv import load_dotenv

from .gateway.credentials import read_service_account_keys

# Carrega as variáveis de ambiente do arquivo .env
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"A variável de ambiente '{name}' deve ser numérica (recebido: '{raw}').")
    if value < 0:
        raise ValueError(f"A variável de ambiente '{name}' não pode ser negativa.")
    return value


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@dataclass(frozen=True)
class Config:
    """
    Configurações do gateway, obtidas de variáveis de ambiente.

    Valores passados diretamente no construtor têm prioridade sobre o ambiente.

    Attributes:
        service_account_keys (tuple[str, ...] | None): JSONs das contas de serviço, na ordem
            de rotação (GOOGLE_SERVICE_ACCOUNT_KEY, _2, _3, _4).
        key_cooldown_seconds (float | None): Tempo de descanso de uma chave após erro de cota.
        request_timeout_seconds (float | None): Prazo máximo de uma requisição de autoget.
        row_claim_ttl_seconds (float | None): Validade da marca de "linha em processamento".
        queue_entry_ttl_seconds (float | None): Idade máxima de uma entrada da fila de admissão.
        used_value_ttl_seconds (float | None): Tempo que um valor entregue fica na memória.
        queue_busy_threshold (int | None): Tamanho de fila acima do qual o autoget usa o modo simples.
        queue_poll_seconds (float | None): Intervalo de verificação da fila.
        rate_limit_seconds (float | None): Intervalo mínimo entre chamadas à API do Sheets.
        rate_limit_jitter_seconds (float | None): Jitter máximo somado ao intervalo.
        cors_origins (tuple[str, ...] | None): Origens liberadas para CORS.
        host (str | None): Endereço de bind do servidor.
        port (int | None): Porta do servidor.
        log_level (str | None): Nível de log.
    """
    service_account_keys: tuple[str, ...] | None = None
    key_cooldown_seconds: float | None = None
    request_timeout_seconds: float | None = None
    row_claim_ttl_seconds: float | None = None
    queue_entry_ttl_seconds: float | None = None
    used_value_ttl_seconds: float | None = None
    queue_busy_threshold: int | None = None
    queue_poll_seconds: float | None = None
    rate_limit_seconds: float | None = None
    rate_limit_jitter_seconds: float | None = None
    cors_origins: tuple[str, ...] | None = None
    host: str | None = None
    port: int | None = None
    log_level: str | None = None

    def __post_init__(self):
        if self.service_account_keys is None:
            object.__setattr__(self, 'service_account_keys', tuple(read_service_account_keys()))
        else:
            object.__setattr__(
                self, 'service_account_keys', tuple(k for k in self.service_account_keys if k)
            )

        numeric_defaults = {
            'key_cooldown_seconds': ('KEY_COOLDOWN_SECONDS', 120.0, _env_float),
            'request_timeout_seconds': ('REQUEST_TIMEOUT_SECONDS', 15.0, _env_float),
            'row_claim_ttl_seconds': ('ROW_CLAIM_TTL_SECONDS', 5.0, _env_float),
            'queue_entry_ttl_seconds': ('QUEUE_ENTRY_TTL_SECONDS', 300.0, _env_float),
            'used_value_ttl_seconds': ('USED_VALUE_TTL_SECONDS', 3600.0, _env_float),
            'queue_busy_threshold': ('QUEUE_BUSY_THRESHOLD', 5, _env_int),
            'queue_poll_seconds': ('QUEUE_POLL_SECONDS', 0.1, _env_float),
            'rate_limit_seconds': ('RATE_LIMIT_SECONDS', 0.0, _env_float),
            'rate_limit_jitter_seconds': ('RATE_LIMIT_JITTER_SECONDS', 0.0, _env_float),
            'port': ('PORT', 8000, _env_int),
        }
        for attribute, (env_name, default, parse) in numeric_defaults.items():
            if getattr(self, attribute) is None:
                object.__setattr__(self, attribute, parse(env_name, default))
            elif getattr(self, attribute) < 0:
                raise ValueError(f"O valor de '{attribute}' não pode ser negativo.")

        if self.cors_origins is None:
            raw_origins = os.getenv('CORS_ORIGINS', '*')
            origins = tuple(o.strip() for o in raw_origins.split(',') if o.strip())
            object.__setattr__(self, 'cors_origins', origins or ('*',))
        if self.host is None:
            object.__setattr__(self, 'host', os.getenv('HOST', '0.0.0.0'))
        if self.log_level is None:
            object.__setattr__(self, 'log_level', os.getenv('LOG_LEVEL', 'INFO').upper())
