"""
Rotação de contas de serviço.

Cada conta de serviço tem sua própria cota de leitura/escrita na API do Google Sheets.
Quando uma chamada estoura a cota, a chave entra em descanso (cooldown) e o cursor
compartilhado avança para a próxima chave.
"""
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from gspread import Client

from ._retry import is_quota_error
from .connection import connect_service_account
from .credentials import load_credentials

logger = logging.getLogger(__name__)

ReturnType = TypeVar("ReturnType")


class NoCredentialsError(RuntimeError):
    """Nenhuma conta de serviço foi configurada."""


class KeysExhaustedError(RuntimeError):
    """Todas as contas de serviço estão em cooldown ou inutilizáveis."""


@dataclass(frozen=True)
class KeyLease:
    """
    Chave escolhida para uma chamada.

    Attributes:
        index (int): Posição da chave na rotação (0-based).
        client_email (str): E-mail da conta de serviço.
        client (Client): Cliente autenticado com a chave.
    """
    index: int
    client_email: str
    client: Client


class KeyRotation:
    """
    Escolhe qual conta de serviço usar em cada chamada à API.

    O estado (cursor, contadores de falha e horários da última falha) é compartilhado
    por todos os endpoints do processo.
    """

    def __init__(
        self,
        raw_keys: list[str] | tuple[str, ...],
        cooldown_seconds: float = 120.0,
        clock: Callable[[], float] = time.time,
        connect: Callable[[dict], Client] = connect_service_account,
    ):
        """
        Args:
            raw_keys: JSONs das contas de serviço, na ordem de rotação.
            cooldown_seconds: Tempo que uma chave fica fora da rotação após erro de cota.
            clock: Fonte de tempo (segundos).
            connect: Fábrica de clientes a partir das informações da conta.
        """
        self._raw_keys = list(raw_keys)
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._connect = connect

        self._lock = threading.Lock()
        self._current_index = 0
        self._failure_count: dict[int, int] = {}
        self._last_failure: dict[int, float] = {}
        self._leases: dict[int, KeyLease] = {}

    @property
    def key_count(self) -> int:
        return len(self._raw_keys)

    @property
    def current_index(self) -> int:
        return self._current_index

    def failure_count(self, index: int) -> int:
        return self._failure_count.get(index, 0)

    def client_emails(self) -> list[str]:
        """E-mails das contas configuradas (sem segredos), na ordem de rotação."""
        emails = []
        for raw_key in self._raw_keys:
            try:
                emails.append(str(load_credentials(raw_key).get('client_email', '')))
            except ValueError:
                emails.append('')
        return emails

    def in_cooldown(self, index: int) -> bool:
        last_failure = self._last_failure.get(index)
        if last_failure is None:
            return False
        return self._clock() - last_failure < self.cooldown_seconds

    def _lease(self, index: int) -> KeyLease | None:
        """
        Obtém (ou cria e guarda) o cliente de uma chave.

        Returns:
            KeyLease | None: None se a chave não puder ser carregada.
        """
        if index in self._leases:
            return self._leases[index]

        try:
            info = load_credentials(self._raw_keys[index])
            client = self._connect(info)
        except (ValueError, KeyError) as e:
            logger.error(
                "Chave %d/%d inutilizável: %s", index + 1, self.key_count, e
            )
            return None

        lease = KeyLease(index=index, client_email=str(info.get('client_email', '')), client=client)
        self._leases[index] = lease
        logger.info(
            "Usando conta de serviço %d/%d: %s", index + 1, self.key_count, lease.client_email
        )
        return lease

    def acquire(self) -> KeyLease:
        """
        Escolhe a chave para a próxima chamada.

        Tenta a chave atual; se estiver em cooldown (ou inutilizável), percorre as
        seguintes em ordem circular e move o cursor para a escolhida.

        Returns:
            KeyLease: Chave escolhida.

        Raises:
            NoCredentialsError: Se nenhuma chave estiver configurada.
            KeysExhaustedError: Se todas as chaves estiverem em cooldown ou inutilizáveis.
        """
        if not self._raw_keys:
            raise NoCredentialsError("Nenhuma conta de serviço configurada.")

        with self._lock:
            for offset in range(self.key_count):
                index = (self._current_index + offset) % self.key_count
                if self.in_cooldown(index):
                    logger.debug("Chave %d em cooldown, pulando...", index + 1)
                    continue

                lease = self._lease(index)
                if lease is None:
                    continue

                if index != self._current_index:
                    logger.info("Trocando para a chave %d/%d", index + 1, self.key_count)
                    self._current_index = index
                return lease

        logger.error("Todas as contas de serviço estão em cooldown ou falharam.")
        raise KeysExhaustedError("Todas as contas de serviço estão em cooldown ou falharam.")

    def primary(self) -> KeyLease:
        """
        Retorna a primeira chave, ignorando cooldown e cursor.

        Raises:
            NoCredentialsError: Se nenhuma chave estiver configurada.
            KeysExhaustedError: Se a primeira chave não puder ser carregada.
        """
        if not self._raw_keys:
            raise NoCredentialsError("Nenhuma conta de serviço configurada.")
        with self._lock:
            lease = self._lease(0)
        if lease is None:
            raise KeysExhaustedError("A primeira conta de serviço não pôde ser carregada.")
        return lease

    def record_failure(self, index: int) -> None:
        """
        Registra uma falha de cota na chave e avança o cursor compartilhado.

        Args:
            index (int): Posição da chave que falhou.
        """
        with self._lock:
            count = self._failure_count.get(index, 0) + 1
            self._failure_count[index] = count
            self._last_failure[index] = self._clock()
            if self.key_count:
                self._current_index = (self._current_index + 1) % self.key_count

        logger.warning(
            "Chave %d falhou (total de falhas: %d). Próxima chave: %d",
            index + 1,
            count,
            self._current_index + 1,
        )

    def execute(self, operation: Callable[[Client], ReturnType]) -> ReturnType:
        """
        Executa uma operação na API, trocando de chave em caso de erro de cota.

        Faz no máximo uma tentativa por chave configurada. Erros que não são de cota
        são propagados imediatamente, sem rotação.

        Args:
            operation (Callable[[Client], ReturnType]): Operação que recebe o cliente autenticado.

        Returns:
            O resultado da operação.
        """
        last_error: Exception | None = None

        for attempt in range(1, max(self.key_count, 1) + 1):
            try:
                lease = self.acquire()
            except KeysExhaustedError:
                if last_error is not None:
                    raise last_error
                raise

            try:
                logger.debug(
                    "Tentativa %d/%d com a chave %d", attempt, self.key_count, lease.index + 1
                )
                return operation(lease.client)
            except Exception as e:
                if not is_quota_error(e):
                    raise
                last_error = e
                logger.warning(
                    "Cota excedida na chave %d, tentando a próxima...", lease.index + 1
                )
                self.record_failure(lease.index)

        logger.error("Todas as contas de serviço falharam.")
        assert last_error is not None
        raise last_error
