# -*- coding: utf-8 -*-
"""
Registros de domínio consumidos pelo motor de cronograma.

A persistência fica fora deste pacote: os registros chegam como dicionários
simples (linhas das tabelas schedule_task, subtarefas, sprint_tarefas) e são
convertidos aqui para dataclasses.
"""

from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from typing import List, Optional
import enum
import re

import pytz

from .utils.constants import FUSO_HORARIO_PADRAO

# Define o fuso horário brasileiro
br_timezone = pytz.timezone(FUSO_HORARIO_PADRAO)


def get_brasilia_now():
    """Retorna datetime atual no fuso horário de Brasília."""
    return datetime.now(br_timezone)


class SubtaskStatus(enum.Enum):
    TODO = 'todo'
    DOING = 'doing'
    DONE = 'done'
    VALIDATED = 'validated'

    @classmethod
    def from_value(cls, value):
        """Aceita o enum, o valor ('done') ou o nome ('DONE'). Ausente equivale a 'todo'."""
        if isinstance(value, cls):
            return value
        if value is None or value == '':
            return cls.TODO
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"Status de subtarefa inválido: {value!r}")

    @property
    def is_finished(self):
        return self in (SubtaskStatus.DONE, SubtaskStatus.VALIDATED)


class RoadmapStatus(enum.Enum):
    NAO_INICIADO = 'NAO_INICIADO'
    EM_DESENVOLVIMENTO = 'EM_DESENVOLVIMENTO'
    TESTES = 'TESTES'
    DESENVOLVIDO = 'DESENVOLVIDO'
    # Só existe por override manual; nunca é derivado das subtarefas
    CANCELADO = 'CANCELADO'


class RoadmapPlanningStatus(enum.Enum):
    EM_SPRINT = 'EM_SPRINT'
    NAO_PLANEJADA = 'NAO_PLANEJADA'
    EM_PLANEJAMENTO = 'EM_PLANEJAMENTO'
    ENTREGUE = 'ENTREGUE'
    EM_ATRASO = 'EM_ATRASO'


class SprintStatus(enum.Enum):
    PLANEJAMENTO = 'planejamento'
    ATIVO = 'ativo'
    CONCLUIDO = 'concluido'

    @classmethod
    def from_value(cls, value):
        if isinstance(value, cls):
            return value
        if not value:
            return cls.PLANEJAMENTO
        return cls(str(value).strip().lower())


def _parse_instant(value, calendar=None):
    # Import tardio para evitar ciclo models <-> serializers
    from .utils.serializers import parse_instant
    return parse_instant(value, calendar)


def _parse_float(value):
    from .utils.serializers import parse_decimal
    return parse_decimal(value)


@dataclass
class ScheduleTask:
    """Linha do cronograma (tarefa de resumo ou folha)."""

    id: str
    name: str = ''
    project_id: Optional[str] = None
    parent_id: Optional[str] = None
    order_index: int = 0
    is_summary: bool = False
    duration_days: Optional[float] = None
    duration_is_estimate: bool = False
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    predecessors: Optional[str] = None
    responsavel: Optional[str] = None
    notes: Optional[str] = None
    tipo_produto: Optional[str] = None

    def __repr__(self):
        return f'<ScheduleTask {self.id}: {self.name}>'

    @classmethod
    def field_names(cls):
        return {f.name for f in fields(cls)}

    @property
    def predecessor_ids(self) -> List[str]:
        """Ids referenciados em predecessors (apenas exibição; não há cálculo de caminho crítico)."""
        if not self.predecessors:
            return []
        return [p.strip() for p in re.split(r'[,;]', self.predecessors) if p.strip()]

    @classmethod
    def from_dict(cls, data: dict, calendar=None) -> 'ScheduleTask':
        if data.get('id') in (None, ''):
            raise ValueError("Tarefa do cronograma sem 'id'")
        known = cls.field_names()
        values = {k: v for k, v in data.items() if k in known}
        if isinstance(values.get('predecessors'), (list, tuple)):
            values['predecessors'] = ', '.join(str(p) for p in values['predecessors']) or None
        values['id'] = str(data['id'])
        if values.get('parent_id') is not None:
            values['parent_id'] = str(values['parent_id'])
        values['order_index'] = int(values.get('order_index') or 0)
        values['is_summary'] = bool(values.get('is_summary', False))
        values['duration_is_estimate'] = bool(values.get('duration_is_estimate', False))
        values['duration_days'] = _parse_float(values.get('duration_days'))
        values['start_at'] = _parse_instant(values.get('start_at'), calendar)
        values['end_at'] = _parse_instant(values.get('end_at'), calendar)
        return cls(**values)

    def to_dict(self):
        data = asdict(self)
        data['start_at'] = self.start_at.isoformat() if self.start_at else None
        data['end_at'] = self.end_at.isoformat() if self.end_at else None
        return data


@dataclass
class Subtarefa:
    """Item de trabalho folha cujo status compõe o status do pai."""

    id: str
    titulo: str = ''
    status: SubtaskStatus = SubtaskStatus.TODO
    inicio: Optional[datetime] = None
    fim: Optional[datetime] = None
    responsavel: Optional[str] = None
    sprint_tarefa_id: Optional[str] = None
    backlog_id: Optional[str] = None

    def __repr__(self):
        return f'<Subtarefa {self.id}: {self.titulo} ({self.status.value})>'

    @classmethod
    def from_dict(cls, data: dict, calendar=None) -> 'Subtarefa':
        return cls(
            id=str(data.get('id', '')),
            titulo=data.get('titulo') or '',
            status=SubtaskStatus.from_value(data.get('status')),
            inicio=_parse_instant(data.get('inicio'), calendar),
            fim=_parse_instant(data.get('fim'), calendar),
            responsavel=data.get('responsavel'),
            sprint_tarefa_id=data.get('sprint_tarefa_id'),
            backlog_id=data.get('backlog_id'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'titulo': self.titulo,
            'status': self.status.value,
            'inicio': self.inicio.isoformat() if self.inicio else None,
            'fim': self.fim.isoformat() if self.fim else None,
            'responsavel': self.responsavel,
            'sprint_tarefa_id': self.sprint_tarefa_id,
            'backlog_id': self.backlog_id,
        }


@dataclass
class RoadmapItem:
    """Item de backlog posicionado no roadmap, com sprint e subtarefas."""

    id: str
    titulo: str = 'Sem título'
    status_backlog: SubtaskStatus = SubtaskStatus.TODO
    sprint_id: Optional[str] = None
    sprint_status: SprintStatus = SprintStatus.PLANEJAMENTO
    sprint_data_inicio: Optional[datetime] = None
    sprint_data_fim: Optional[datetime] = None
    data_fim_planejada: Optional[datetime] = None
    responsavel: Optional[str] = None
    tipo_produto: Optional[str] = None
    subtarefas: List[Subtarefa] = field(default_factory=list)

    def __repr__(self):
        return f'<RoadmapItem {self.id}: {self.titulo}>'

    @property
    def planned_end(self) -> Optional[datetime]:
        return self.data_fim_planejada or self.sprint_data_fim

    @classmethod
    def from_dict(cls, data: dict, calendar=None) -> 'RoadmapItem':
        return cls(
            id=str(data.get('id', '')),
            titulo=data.get('titulo') or 'Sem título',
            status_backlog=SubtaskStatus.from_value(data.get('status_backlog')),
            sprint_id=data.get('sprint_id'),
            sprint_status=SprintStatus.from_value(data.get('sprint_status')),
            sprint_data_inicio=_parse_instant(data.get('sprint_data_inicio'), calendar),
            sprint_data_fim=_parse_instant(data.get('sprint_data_fim'), calendar),
            data_fim_planejada=_parse_instant(data.get('data_fim_planejada'), calendar),
            responsavel=data.get('responsavel'),
            tipo_produto=data.get('tipo_produto'),
            subtarefas=[Subtarefa.from_dict(s, calendar) for s in data.get('subtarefas') or []],
        )
