"""
Serviço do cronograma hierárquico.
Mantém início/duração/fim coerentes após uma edição e monta a árvore de tarefas.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models import ScheduleTask, get_brasilia_now
from ..utils.constants import NOME_NOVA_TAREFA, DURACAO_NOVA_TAREFA
from ..utils.exceptions import CyclicHierarchyError, InvalidFieldError
from ..utils.serializers import parse_instant, parse_decimal
from ..utils.working_days import WorkCalendar, default_calendar

logger = logging.getLogger(__name__)

DATE_FIELDS = ('start_at', 'end_at')
SCHEDULE_FIELDS = ('start_at', 'duration_days', 'end_at')


@dataclass
class TaskNode:
    """Nó da árvore do cronograma."""
    task: ScheduleTask
    children: List['TaskNode'] = field(default_factory=list)
    level: int = 0

    @property
    def id(self):
        return self.task.id


class ScheduleService:
    """Serviço para editar e organizar as tarefas do cronograma"""

    def __init__(self, calendar: Optional[WorkCalendar] = None):
        self.calendar = calendar or default_calendar

    # --- Edição de campos ---

    def coerce_value(self, field_name: str, value):
        """Converte o valor recebido do formulário para o tipo do campo."""
        if field_name in DATE_FIELDS:
            return parse_instant(value, self.calendar)
        if field_name == 'duration_days':
            return parse_decimal(value)
        return value

    def update_schedule_field(self, task: ScheduleTask, field_name: str, value) -> Dict:
        """
        Gera o patch de uma edição de campo, recalculando o campo dependente.

        Args:
            task: Tarefa no estado atual
            field_name: Campo editado
            value: Novo valor (datetime/str para datas, número/str para duração)

        Returns:
            Dicionário com os campos a gravar

        Raises:
            InvalidFieldError: campo inexistente em ScheduleTask
            NegativeDurationError: fim anterior ao início ou duração negativa
        """
        if field_name not in ScheduleTask.field_names() or field_name == 'id':
            raise InvalidFieldError(field_name)

        value = self.coerce_value(field_name, value)
        patch = {field_name: value}

        if field_name not in SCHEDULE_FIELDS or value is None:
            return patch

        if task.is_summary:
            logger.info(f"[Cronograma] Tarefa de resumo {task.id}: '{field_name}' gravado sem recálculo")
            return patch

        if field_name == 'start_at':
            if task.duration_days is None:
                logger.debug(f"[Cronograma] Tarefa {task.id} sem duração; fim não recalculado")
                return patch
            adjusted_start = self.calendar.adjust_to_working_time(value)
            patch['start_at'] = adjusted_start
            patch['end_at'] = self.calendar.add_working_days(adjusted_start, task.duration_days)

        elif field_name == 'duration_days':
            if task.start_at is None:
                logger.debug(f"[Cronograma] Tarefa {task.id} sem início; fim não recalculado")
                return patch
            patch['end_at'] = self.calendar.add_working_days(task.start_at, value)

        elif field_name == 'end_at':
            if task.start_at is None:
                logger.debug(f"[Cronograma] Tarefa {task.id} sem início; duração não recalculada")
                return patch
            patch['duration_days'] = self.calendar.calculate_working_days(task.start_at, value)

        logger.info(f"[Cronograma] Tarefa {task.id}: '{field_name}' editado, patch={sorted(patch)}")
        return patch

    @staticmethod
    def apply_patch(task: ScheduleTask, patch: Dict) -> ScheduleTask:
        return replace(task, **patch)

    # --- Hierarquia ---

    @staticmethod
    def sort_tasks(tasks: Iterable[ScheduleTask]) -> List[ScheduleTask]:
        """Ordem de exibição: order_index crescente; empate pela posição na lista."""
        return sorted(tasks, key=lambda t: t.order_index)

    def _siblings(self, task: ScheduleTask, tasks: List[ScheduleTask]) -> List[ScheduleTask]:
        ids = {t.id for t in tasks}
        parent_id = task.parent_id if task.parent_id in ids else None
        return self.sort_tasks(
            t for t in tasks
            if (t.parent_id if t.parent_id in ids else None) == parent_id
        )

    @staticmethod
    def is_descendant(candidate_id: str, ancestor_id: str, tasks: List[ScheduleTask]) -> bool:
        """True se candidate_id está na subárvore de ancestor_id (inclui o próprio)."""
        parents = {t.id: t.parent_id for t in tasks}
        current = candidate_id
        visited = set()
        while current is not None and current not in visited:
            if current == ancestor_id:
                return True
            visited.add(current)
            current = parents.get(current)
        return False

    def reparent(self, task_id: str, parent_id: Optional[str], tasks: List[ScheduleTask]) -> Dict:
        """
        Move a tarefa para debaixo de parent_id (None = raiz). Datas não mudam.

        Raises:
            CyclicHierarchyError: parent_id é a própria tarefa ou um descendente
        """
        if parent_id is not None and self.is_descendant(parent_id, task_id, tasks):
            logger.warning(f"[Cronograma] Reparentamento recusado: {task_id} sob {parent_id}")
            raise CyclicHierarchyError(task_id, parent_id)
        return {'parent_id': parent_id}

    def indent(self, task_id: str, tasks: List[ScheduleTask]) -> Dict:
        """
        Coloca a tarefa sob o irmão imediatamente anterior na ordem de exibição.

        Returns:
            {'parent_id': id_do_irmao} ou {} quando não há tarefa anterior
        """
        task = next((t for t in tasks if t.id == task_id), None)
        if not task:
            logger.warning(f"[Cronograma] Indentar: tarefa {task_id} não encontrada")
            return {}

        siblings = self._siblings(task, tasks)
        position = next(i for i, t in enumerate(siblings) if t.id == task_id)
        if position == 0:
            logger.info(f"[Cronograma] Não há tarefa anterior para indentar {task_id}")
            return {}

        previous = siblings[position - 1]
        return self.reparent(task_id, previous.id, tasks)

    def outdent(self, task_id: str, tasks: List[ScheduleTask]) -> Dict:
        """Leva a tarefa para a raiz. {} se já for raiz ou não existir."""
        task = next((t for t in tasks if t.id == task_id), None)
        if not task or task.parent_id is None:
            return {}
        return {'parent_id': None}

    def build_tree(self, tasks: List[ScheduleTask]) -> List[TaskNode]:
        """
        Monta a floresta a partir da lista plana.

        Pai inexistente: a tarefa vira raiz. Tarefas presas num ciclo de
        parent_id são promovidas a raiz.
        """
        ordered = self.sort_tasks(tasks)
        nodes = {t.id: TaskNode(task=t) for t in ordered}
        roots = []

        for task in ordered:
            node = nodes[task.id]
            parent = nodes.get(task.parent_id) if task.parent_id is not None else None
            if parent is not None and parent is not node:
                parent.children.append(node)
            else:
                if task.parent_id is not None:
                    logger.info(f"[Cronograma] Tarefa {task.id} com pai inexistente ({task.parent_id}); tratada como raiz")
                roots.append(node)

        visited = set()
        self._mark_levels(roots, 0, visited)

        for task in ordered:
            if task.id in visited:
                continue
            node = nodes[self._cycle_member(task.id, nodes)]
            nodes[node.task.parent_id].children.remove(node)
            logger.warning(f"[Cronograma] Ciclo em parent_id envolvendo {node.id}; tratada como raiz")
            roots.append(node)
            self._mark_levels([node], 0, visited)

        return roots

    @staticmethod
    def _cycle_member(task_id: str, nodes: Dict[str, TaskNode]) -> str:
        # Sobe pelos pais até repetir um id; o repetido está no ciclo
        seen = set()
        current = task_id
        while current not in seen:
            seen.add(current)
            current = nodes[current].task.parent_id
        return current

    def _mark_levels(self, nodes: List[TaskNode], level: int, visited: Set[str]):
        stack = [(n, level) for n in reversed(nodes)]
        while stack:
            node, depth = stack.pop()
            if node.id in visited:
                continue
            visited.add(node.id)
            node.level = depth
            stack.extend((child, depth + 1) for child in reversed(node.children))

    def flatten_tree(self, roots: List[TaskNode],
                     expanded_ids: Optional[Set[str]] = None) -> List[Tuple[ScheduleTask, int]]:
        """
        Linhas da grade em ordem de exibição com o nível de indentação.

        Com expanded_ids, filhos só aparecem sob nós expandidos.
        """
        rows = []
        stack = list(reversed(roots))
        while stack:
            node = stack.pop()
            rows.append((node.task, node.level))
            if expanded_ids is None or node.id in expanded_ids:
                stack.extend(reversed(node.children))
        return rows

    # --- Criação ---

    def new_schedule_task(self, project_id: str, tasks: List[ScheduleTask],
                          now: Optional[datetime] = None) -> ScheduleTask:
        """Nova tarefa no fim da lista: 1 dia útil a partir de agora."""
        now = now or get_brasilia_now()
        task = ScheduleTask(
            id=str(uuid.uuid4()),
            project_id=project_id,
            name=NOME_NOVA_TAREFA,
            order_index=len(tasks),
            duration_days=DURACAO_NOVA_TAREFA,
            start_at=self.calendar.to_local(now),
            end_at=self.calendar.add_working_days(now, DURACAO_NOVA_TAREFA),
        )
        logger.info(f"[Cronograma] Nova tarefa {task.id} no projeto {project_id} (ordem {task.order_index})")
        return task


_default_service = ScheduleService()


def update_schedule_field(task, field_name, value, calendar=None):
    service = ScheduleService(calendar) if calendar else _default_service
    return service.update_schedule_field(task, field_name, value)


def indent(task_id, tasks):
    return _default_service.indent(task_id, tasks)


def outdent(task_id, tasks):
    return _default_service.outdent(task_id, tasks)


def build_tree(tasks):
    return _default_service.build_tree(tasks)
