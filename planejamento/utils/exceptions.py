"""
Exceções do motor de cronograma.

Todas herdam de ValueError: são erros de dados de entrada, nunca de I/O.
"""


class PlanejamentoError(ValueError):
    """Erro base do motor de cronograma e status."""


class NegativeDurationError(PlanejamentoError):
    """Intervalo com fim anterior ao início ou duração negativa."""

    def __init__(self, start, end=None, duration_days=None):
        self.start = start
        self.end = end
        self.duration_days = duration_days
        if duration_days is not None:
            message = f"Duração negativa não permitida: {duration_days} dias úteis a partir de {start}"
        else:
            message = f"Data de fim ({end}) anterior à data de início ({start})"
        super().__init__(message)


class CyclicHierarchyError(PlanejamentoError):
    """Reparentamento que colocaria uma tarefa sob ela mesma ou um descendente."""

    def __init__(self, task_id, parent_id):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Tarefa {task_id} não pode ficar sob {parent_id}: a hierarquia ficaria cíclica"
        )


class InvalidFieldError(PlanejamentoError):
    """Campo inexistente em ScheduleTask."""

    def __init__(self, field):
        self.field = field
        super().__init__(f"Campo inválido para tarefa de cronograma: '{field}'")


class InvalidCalendarConfigError(PlanejamentoError):
    """Configuração de calendário de trabalho inconsistente."""
