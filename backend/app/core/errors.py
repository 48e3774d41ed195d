"""
Erros do motor de progressão de tarefas.

Todos herdam de EngineError, que carrega o status HTTP usado pelas rotas.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class EngineError(Exception):
    """Base para todas as falhas do motor de progressão."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "engine_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class NotFound(EngineError):
    """Estagiário, tarefa ou atribuição inexistente."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ValidationError(EngineError):
    """Conteúdo de entrega vazio ou conjunto de tarefas malformado."""

    status_code = 422
    kind = "validation_error"


class InvalidTransition(EngineError):
    """Evento não permitido a partir do status atual."""

    status_code = status.HTTP_409_CONFLICT
    kind = "invalid_transition"

    def __init__(self, current_status: str, event: str):
        self.current_status = current_status
        self.event = event
        super().__init__(f"Transição inválida: '{event}' não é permitido a partir de '{current_status}'")


class Unauthorized(EngineError):
    """Ator sem permissão para a operação."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "unauthorized"


class ConflictError(EngineError):
    """A atribuição mudou entre a leitura e a escrita condicional."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


async def engine_error_handler(request: Request, exc: EngineError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
    )
