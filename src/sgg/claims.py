"""
Coordenação em memória da reivindicação de linhas pelo autoget.

Três estruturas, todas protegidas pela mesma Condition:

- fila de admissão FIFO: cada requisição espera ser a primeira da fila antes de
  fazer o ciclo leitura-escolha-escrita da coluna de status;
- linhas em processamento: "sheet_id:sheet_name:linha" -> horário da marca;
- valores entregues: lembrança recente do que já foi entregue, para não repetir
  uma linha enquanto a escrita de "used" ainda não apareceu na planilha.

Nada disso é durável nem compartilhado entre processos.
"""
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class QueueEntry:
    request_id: str
    timestamp: float
    sheet_id: str
    sheet_name: str


@dataclass
class UsedValue:
    sheet_id: str
    sheet_name: str
    row: int
    value: str
    timestamp: float


def claim_key(sheet_id: str, sheet_name: str, row: int) -> str:
    return f"{sheet_id}:{sheet_name}:{row}"


class ClaimCoordinator:
    """
    Fila de admissão + conjunto de linhas reivindicadas, compartilhados pelas requisições.
    """

    def __init__(
        self,
        busy_threshold: int = 5,
        queue_entry_ttl: float = 300.0,
        row_claim_ttl: float = 5.0,
        used_value_ttl: float = 3600.0,
        poll_interval: float = 0.1,
        clock: Callable[[], float] = time.time,
    ):
        self.busy_threshold = busy_threshold
        self.queue_entry_ttl = queue_entry_ttl
        self.row_claim_ttl = row_claim_ttl
        self.used_value_ttl = used_value_ttl
        self.poll_interval = poll_interval
        self._clock = clock

        self._condition = threading.Condition()
        self._queue: list[QueueEntry] = []
        self._claims: dict[str, float] = {}
        self._used: list[UsedValue] = []

    # ------------------------------------------------------------------
    # Fila de admissão
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Remove entradas antigas da fila e valores entregues há muito tempo."""
        now = self._clock()
        with self._condition:
            before = len(self._queue)
            self._queue = [e for e in self._queue if now - e.timestamp < self.queue_entry_ttl]
            self._used = [u for u in self._used if now - u.timestamp < self.used_value_ttl]
            if len(self._queue) != before:
                logger.info("%d entradas expiradas removidas da fila.", before - len(self._queue))
                self._condition.notify_all()

    def size(self) -> int:
        with self._condition:
            return len(self._queue)

    def is_busy(self) -> bool:
        return self.size() > self.busy_threshold

    def enqueue(self, request_id: str, sheet_id: str, sheet_name: str) -> int:
        """
        Adiciona a requisição ao fim da fila.

        Returns:
            int: Tamanho da fila após a inserção.
        """
        with self._condition:
            self._queue.append(
                QueueEntry(
                    request_id=request_id,
                    timestamp=self._clock(),
                    sheet_id=sheet_id,
                    sheet_name=sheet_name,
                )
            )
            return len(self._queue)

    def position(self, request_id: str) -> int:
        """Posição 1-based da requisição na fila, ou 0 se não estiver nela."""
        with self._condition:
            for index, entry in enumerate(self._queue):
                if entry.request_id == request_id:
                    return index + 1
        return 0

    def wait_for_turn(self, request_id: str, timeout: float) -> None:
        """
        Bloqueia até a requisição ser a primeira da fila (ou ter saído dela).

        Args:
            request_id (str): Requisição que está esperando.
            timeout (float): Tempo máximo de espera em segundos.

        Raises:
            TimeoutError: Se a vez não chegar dentro do prazo.
        """
        deadline = time.monotonic() + timeout
        with self._condition:
            while True:
                index = next(
                    (i for i, e in enumerate(self._queue) if e.request_id == request_id), -1
                )
                if index <= 0:
                    return

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"Request timeout after {timeout * 1000:.0f}ms")

                logger.debug(
                    "[%s] Aguardando na fila. Posição: %d/%d",
                    request_id,
                    index + 1,
                    len(self._queue),
                )
                self._condition.wait(min(self.poll_interval, remaining))

    def dequeue(self, request_id: str) -> None:
        """Remove a requisição da fila e acorda as que estão esperando."""
        with self._condition:
            self._queue = [e for e in self._queue if e.request_id != request_id]
            self._condition.notify_all()

    # ------------------------------------------------------------------
    # Linhas em processamento
    # ------------------------------------------------------------------

    def expire_claims(self) -> None:
        """Remove marcas de linhas em processamento mais antigas que o TTL."""
        now = self._clock()
        with self._condition:
            expired = [k for k, ts in self._claims.items() if now - ts > self.row_claim_ttl]
            for key in expired:
                logger.info("Removendo marca expirada de linha em processamento: %s", key)
                del self._claims[key]

    def is_claimed(self, sheet_id: str, sheet_name: str, row: int) -> bool:
        with self._condition:
            return claim_key(sheet_id, sheet_name, row) in self._claims

    def claim(self, sheet_id: str, sheet_name: str, row: int) -> None:
        with self._condition:
            self._claims[claim_key(sheet_id, sheet_name, row)] = self._clock()

    def release(self, sheet_id: str, sheet_name: str, row: int | None = None) -> None:
        """
        Libera marcas de linhas em processamento.

        Args:
            sheet_id (str): ID da planilha.
            sheet_name (str): Nome da aba.
            row (int | None): Linha específica, ou None para todas as linhas da aba.
        """
        with self._condition:
            if row is not None:
                self._claims.pop(claim_key(sheet_id, sheet_name, row), None)
                return
            prefix = f"{sheet_id}:{sheet_name}:"
            for key in [k for k in self._claims if k.startswith(prefix)]:
                del self._claims[key]

    def claimed_count(self) -> int:
        with self._condition:
            return len(self._claims)

    # ------------------------------------------------------------------
    # Valores entregues
    # ------------------------------------------------------------------

    def was_used(self, sheet_id: str, sheet_name: str, row: int, value: str) -> bool:
        with self._condition:
            return any(
                u.sheet_id == sheet_id
                and u.sheet_name == sheet_name
                and u.row == row
                and u.value == value
                for u in self._used
            )

    def record_used(self, sheet_id: str, sheet_name: str, row: int, value: str) -> None:
        with self._condition:
            self._used.append(
                UsedValue(
                    sheet_id=sheet_id,
                    sheet_name=sheet_name,
                    row=row,
                    value=value,
                    timestamp=self._clock(),
                )
            )

    def forget_used(self, sheet_id: str, sheet_name: str) -> None:
        """Esquece os valores entregues de uma aba (usado pelo reset)."""
        with self._condition:
            self._used = [
                u for u in self._used if not (u.sheet_id == sheet_id and u.sheet_name == sheet_name)
            ]
