import logging
import time
import uuid

from . import grid
from .claims import ClaimCoordinator
from .errors import ApiError, NotFound, RequestTimeout, not_configured
from .gateway import (
    KeyRotation,
    KeysExhaustedError,
    NoCredentialsError,
    get_values,
    sheet_range,
    use_spreadsheet,
)
from .sheets import read_grid, write_grid

logger = logging.getLogger(__name__)

# Colunas lidas pelo autoget: valor (A), e até duas colunas de controle
CLAIM_RANGE = "A:C"
# Coluna de status quando nenhum cabeçalho contém "status" (C)
DEFAULT_STATUS_COLUMN = 2
USED_MARKER = "used"
# Limites do modo simples (fila congestionada)
BYPASS_STATUS_COLUMN = 1
BYPASS_MAX_ROWS = 50


def _is_used(status: str) -> bool:
    """Status "used" sem diferenciar maiúsculas e ignorando espaços nas pontas."""
    return status.strip().lower() == USED_MARKER


class RowDispenser:
    """
    Entrega a próxima linha ainda não usada de uma aba e marca seu status como "used".

    A leitura-escolha-escrita é serializada pela fila de admissão do ClaimCoordinator.
    Quando a fila está congestionada, a requisição é atendida pelo modo simples,
    que apenas lê e não escreve nada.
    """

    def __init__(
        self,
        rotation: KeyRotation,
        coordinator: ClaimCoordinator,
        request_timeout: float = 15.0,
    ):
        """
        Args:
            rotation (KeyRotation): Política de rotação de contas de serviço.
            coordinator (ClaimCoordinator): Fila de admissão e marcas de linhas.
            request_timeout (float): Prazo total da requisição em segundos.
        """
        self.rotation = rotation
        self.coordinator = coordinator
        self.request_timeout = request_timeout

    def dispense(self, sheet_id: str, sheet_name: str, reset: bool = False) -> dict:
        """
        Método central: reivindica a próxima linha disponível da aba.

        Fluxo:
        1. Limpa a fila; se congestionada, usa o modo simples
        2. Entra na fila e espera a vez (dentro do prazo)
        3. Lê A:C, escolhe a primeira linha livre e marca como em processamento
        4. Escreve "used" na coluna de status e memoriza o valor entregue
        5. Sai da fila e libera as marcas da aba

        Args:
            sheet_id (str): ID da planilha.
            sheet_name (str): Nome da aba.
            reset (bool): Se True, limpa toda a coluna de status em vez de entregar uma linha.

        Returns:
            dict: Corpo da resposta JSON.

        Raises:
            ApiError: Erros com status HTTP e corpo próprios.
        """
        request_id = uuid.uuid4().hex[:13]
        self.coordinator.cleanup()

        if self.coordinator.is_busy():
            logger.info(
                "[%s] Fila congestionada (%d), usando modo simples",
                request_id,
                self.coordinator.size(),
            )
            return self._dispense_simple(sheet_id, sheet_name, request_id)

        started = time.monotonic()
        queue_size = self.coordinator.enqueue(request_id, sheet_id, sheet_name)
        logger.info("[%s] Requisição adicionada à fila. Tamanho: %d", request_id, queue_size)

        try:
            self._wait_for_turn(request_id)
            logger.info("[%s] Processando requisição...", request_id)
            return self._process(request_id, sheet_id, sheet_name, reset, started)

        except ApiError:
            raise

        except (NoCredentialsError, KeysExhaustedError) as e:
            logger.error("[%s] Nenhuma conta de serviço disponível: %s", request_id, e)
            raise not_configured(self.rotation.key_count)

        except Exception as e:
            logger.error("[%s] Erro: %s", request_id, e, exc_info=True)
            raise ApiError(
                f"Processing error: {e}",
                queuePosition=self.coordinator.position(request_id),
                totalInQueue=self.coordinator.size(),
            )

        finally:
            self.coordinator.dequeue(request_id)
            self.coordinator.release(sheet_id, sheet_name)
            logger.info(
                "[%s] Requisição concluída. Fila: %d, linhas em processamento: %d",
                request_id,
                self.coordinator.size(),
                self.coordinator.claimed_count(),
            )

    def _timeout_error(self, request_id: str) -> RequestTimeout:
        return RequestTimeout(
            "Request timeout - please try again",
            timeout=f"{self.request_timeout * 1000:.0f}ms",
            queuePosition=self.coordinator.position(request_id),
        )

    def _wait_for_turn(self, request_id: str) -> None:
        if self.coordinator.position(request_id) <= 1:
            logger.debug("[%s] Caminho rápido - processando imediatamente", request_id)
            return
        try:
            self.coordinator.wait_for_turn(request_id, self.request_timeout)
        except TimeoutError:
            logger.warning("[%s] Tempo esgotado aguardando na fila", request_id)
            raise self._timeout_error(request_id)

    def _process(
        self,
        request_id: str,
        sheet_id: str,
        sheet_name: str,
        reset: bool,
        started: float,
    ) -> dict:
        self.coordinator.expire_claims()

        rows = read_grid(self.rotation, sheet_id, sheet_range(sheet_name, CLAIM_RANGE))
        if len(rows) <= 1:
            raise NotFound(
                "Sheet has no data or only a header row",
                sheetName=sheet_name,
                rowCount=len(rows),
            )

        header = rows[0]
        status_column = grid.find_status_column(header, DEFAULT_STATUS_COLUMN)
        status_letter = grid.column_letter(status_column)

        if reset:
            return self._reset(request_id, sheet_id, sheet_name, rows, status_column)

        selected = self._select_row(request_id, sheet_id, sheet_name, rows, status_column)
        if selected is None:
            raise NotFound(True, note="Hết account")

        row_index, value = selected
        self.coordinator.claim(sheet_id, sheet_name, row_index)
        logger.info("[%s] Linha %d selecionada com valor: %s", request_id, row_index + 1, value)

        if time.monotonic() - started > self.request_timeout:
            logger.warning("[%s] Prazo esgotado antes de marcar a linha", request_id)
            raise self._timeout_error(request_id)

        status_cell = sheet_range(sheet_name, f"{status_letter}{row_index + 1}")
        try:
            write_grid(self.rotation, sheet_id, status_cell, [[USED_MARKER]])
            logger.info("[%s] %s marcado como used", request_id, status_cell)
        except NoCredentialsError:
            raise
        except Exception as e:
            # A linha continua sendo entregue; a memória de valores usados evita repetição
            logger.error(
                "[%s] Falha ao atualizar o status de %s: %s", request_id, status_cell, e
            )

        self.coordinator.record_used(sheet_id, sheet_name, row_index, value)

        return {
            "NAME": value.split("|")[0] or value,
            "VALUE": value,
        }

    def _select_row(
        self,
        request_id: str,
        sheet_id: str,
        sheet_name: str,
        rows: list[list[str]],
        status_column: int,
    ) -> tuple[int, str] | None:
        """
        Primeira linha com valor na coluna A, status diferente de "used", sem marca de
        processamento e que não foi entregue recentemente.

        Returns:
            tuple[int, str] | None: (índice 0-based da linha, valor da coluna A).
        """
        for row_index in range(1, len(rows)):
            value = grid.cell(rows, row_index, 0)
            status = grid.cell(rows, row_index, status_column)

            if not value or _is_used(status):
                continue

            if self.coordinator.is_claimed(sheet_id, sheet_name, row_index):
                logger.debug(
                    "[%s] Pulando linha %d - em processamento", request_id, row_index + 1
                )
                continue

            if self.coordinator.was_used(sheet_id, sheet_name, row_index, value):
                continue

            return row_index, value

        return None

    def _reset(
        self,
        request_id: str,
        sheet_id: str,
        sheet_name: str,
        rows: list[list[str]],
        status_column: int,
    ) -> dict:
        """Limpa toda a coluna de status (abaixo do cabeçalho) e a memória da aba."""
        logger.info("[%s] Limpando todos os status...", request_id)

        letter = grid.column_letter(status_column)
        cleared = [[""] for _ in range(1, len(rows))]
        reset_range = sheet_range(sheet_name, f"{letter}2:{letter}{len(rows)}")

        try:
            write_grid(self.rotation, sheet_id, reset_range, cleared)
        except (NoCredentialsError, KeysExhaustedError):
            raise
        except Exception as e:
            logger.error("[%s] Erro ao limpar status: %s", request_id, e, exc_info=True)
            raise ApiError("Failed to reset status", details=str(e))

        self.coordinator.forget_used(sheet_id, sheet_name)
        logger.info("[%s] %d células de status limpas", request_id, len(cleared))

        status_header = grid.cell(rows, 0, status_column)
        return {
            "success": True,
            "message": "Reset completed",
            "resetCount": len(cleared),
            "sheetName": sheet_name,
            "statusColumn": status_header or f"Column {letter}",
        }

    def _dispense_simple(self, sheet_id: str, sheet_name: str, request_id: str) -> dict:
        """
        Modo simples: primeira chave, sem rotação, sem fila e sem escrita.

        Varre no máximo as primeiras linhas da aba com o status na coluna B.
        """
        try:
            lease = self.rotation.primary()
            rows = use_spreadsheet(
                lease.client,
                sheet_id,
                lambda spreadsheet: get_values(spreadsheet, sheet_range(sheet_name, CLAIM_RANGE)),
            )
        except (NoCredentialsError, KeysExhaustedError):
            raise not_configured(self.rotation.key_count)
        except Exception as e:
            logger.error("[%s] Erro no modo simples: %s", request_id, e, exc_info=True)
            raise ApiError("Simple bypass failed")

        if len(rows) <= 1:
            raise NotFound("No data")

        for row_index in range(1, min(len(rows), BYPASS_MAX_ROWS)):
            status = grid.cell(rows, row_index, BYPASS_STATUS_COLUMN)
            if not _is_used(status):
                return {
                    "column": grid.column_letter(BYPASS_STATUS_COLUMN),
                    "VALUE": grid.cell(rows, row_index, 0),
                    "mode": "simple-bypass",
                    "requestId": request_id,
                }

        raise NotFound("No available rows", mode="simple-bypass", requestId=request_id)
