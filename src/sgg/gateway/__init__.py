"""
Gateway para acesso ao Google Sheets.

Este módulo encapsula todas as chamadas à API do Google Sheets, fornecendo uma
interface unificada com retry automático e rotação de contas de serviço.

Módulos:
    - credentials: Leitura e normalização das chaves das contas de serviço
    - connection: Criação de clientes autenticados e abertura de planilhas
    - rotation: Escolha da conta de serviço e troca em erros de cota
    - operations: Leitura e escrita de intervalos
"""

from ._retry import configure_rate_limiting, is_quota_error
from .connection import (
    SCOPES,
    clear_spreadsheet_cache,
    connect_service_account,
    evict_spreadsheet,
    is_stale_spreadsheet_error,
    open_spreadsheet,
    use_spreadsheet,
)
from .credentials import (
    SERVICE_ACCOUNT_ENV_VARS,
    load_credentials,
    normalize_private_key,
    read_service_account_keys,
)
from .operations import (
    FULL_WIDTH,
    get_values,
    is_missing_range_error,
    list_sheet_titles,
    sheet_range,
    update_values,
)
from .rotation import KeyLease, KeyRotation, KeysExhaustedError, NoCredentialsError

__all__ = [
    "SCOPES",
    "SERVICE_ACCOUNT_ENV_VARS",
    "FULL_WIDTH",
    "read_service_account_keys",
    "normalize_private_key",
    "load_credentials",
    "connect_service_account",
    "open_spreadsheet",
    "clear_spreadsheet_cache",
    "evict_spreadsheet",
    "is_stale_spreadsheet_error",
    "use_spreadsheet",
    "get_values",
    "update_values",
    "list_sheet_titles",
    "sheet_range",
    "is_missing_range_error",
    "is_quota_error",
    "configure_rate_limiting",
    "KeyRotation",
    "KeyLease",
    "NoCredentialsError",
    "KeysExhaustedError",
]
