"""
Serviço de status derivado do roadmap.
Calcula o status de entrega de um item a partir das subtarefas e os KPIs do painel.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

import pandas as pd

from ..models import (
    RoadmapItem, RoadmapPlanningStatus, RoadmapStatus, SprintStatus,
    Subtarefa, SubtaskStatus, get_brasilia_now
)
from ..utils.constants import (
    ROTULOS_STATUS_ROADMAP, CORES_STATUS_ROADMAP, ROTULOS_STATUS_PLANEJAMENTO,
    CORES_STATUS_PLANEJAMENTO, COR_STATUS_PADRAO
)
from ..utils.rounding import round_half_up
from ..utils.working_days import WorkCalendar, default_calendar

logger = logging.getLogger(__name__)

SEGUNDOS_POR_DIA = 86400


@dataclass(frozen=True)
class StatusSnapshot:
    """Status e progresso de um item calculados a partir das subtarefas."""
    status: RoadmapStatus
    start_real: Optional[datetime]
    end_real: Optional[datetime]
    percent_complete: int
    total: int = 0
    doing: int = 0
    done: int = 0
    validated: int = 0

    @property
    def concluidas(self):
        return self.done + self.validated

    @property
    def label(self):
        return status_label(self.status)

    @property
    def color(self):
        return status_color(self.status)


@dataclass(frozen=True)
class Kpis:
    total: int
    concluidos: int
    percentual_concluido: int
    tempo_medio_real: int
    atraso_medio: int

    def to_dict(self):
        return {
            'total': self.total,
            'concluidos': self.concluidos,
            'percentual_concluido': self.percentual_concluido,
            'tempo_medio_real': self.tempo_medio_real,
            'atraso_medio': self.atraso_medio,
        }


def status_label(status) -> str:
    if isinstance(status, RoadmapPlanningStatus):
        return ROTULOS_STATUS_PLANEJAMENTO.get(status.value, status.value)
    return ROTULOS_STATUS_ROADMAP.get(status.value, status.value)


def status_color(status) -> str:
    if isinstance(status, RoadmapPlanningStatus):
        return CORES_STATUS_PLANEJAMENTO.get(status.value, COR_STATUS_PADRAO)
    return CORES_STATUS_ROADMAP.get(status.value, COR_STATUS_PADRAO)


class StatusAggregator:
    """Deriva status de entrega e métricas de progresso a partir das subtarefas"""

    @classmethod
    def compute_status(cls, children: Iterable[Subtarefa],
                       override: Optional[RoadmapStatus] = None,
                       calendar: Optional[WorkCalendar] = None) -> StatusSnapshot:
        """
        Calcula o status do item pai.

        Prioridade: todas validadas -> DESENVOLVIDO; todas feitas ou validadas
        -> TESTES; alguma iniciada -> EM_DESENVOLVIMENTO; senão NAO_INICIADO.
        CANCELADO só aparece via override.

        Args:
            children: Subtarefas do item
            override: Status definido manualmente (ex.: CANCELADO)
            calendar: Calendário do fuso usado nas datas reais (padrão: default_calendar)

        Returns:
            StatusSnapshot com status, início/fim reais e percentual validado
        """
        children = list(children)
        total = len(children)

        if total == 0:
            return StatusSnapshot(
                status=override or RoadmapStatus.NAO_INICIADO,
                start_real=None,
                end_real=None,
                percent_complete=0,
            )

        statuses = [SubtaskStatus.from_value(c.status) for c in children]
        doing = statuses.count(SubtaskStatus.DOING)
        done = statuses.count(SubtaskStatus.DONE)
        validated = statuses.count(SubtaskStatus.VALIDATED)

        if validated == total:
            status = RoadmapStatus.DESENVOLVIDO
        elif done + validated == total:
            status = RoadmapStatus.TESTES
        elif doing + done + validated > 0:
            status = RoadmapStatus.EM_DESENVOLVIMENTO
        else:
            status = RoadmapStatus.NAO_INICIADO

        if override is not None:
            logger.info(f"[RoadmapStatus] Override manual: {status.value} -> {override.value}")
            status = override

        starts = [_as_local(c.inicio, calendar) for c in children if c.inicio is not None]
        validated_ends = [
            _as_local(c.fim, calendar) for c, s in zip(children, statuses)
            if s == SubtaskStatus.VALIDATED and c.fim is not None
        ]

        return StatusSnapshot(
            status=status,
            start_real=min(starts) if starts else None,
            end_real=max(validated_ends) if validated_ends else None,
            percent_complete=round_half_up(validated / total * 100),
            total=total,
            doing=doing,
            done=done,
            validated=validated,
        )

    @classmethod
    def calculate_kpis(cls, items: Iterable[RoadmapItem],
                       calendar: Optional[WorkCalendar] = None) -> Kpis:
        """
        KPIs do painel do roadmap.

        tempo_medio_real considera itens com início e fim reais; atraso_medio
        só os itens que terminaram depois do fim planejado.
        """
        items = list(items)
        if not items:
            return Kpis(total=0, concluidos=0, percentual_concluido=0,
                        tempo_medio_real=0, atraso_medio=0)

        rows = []
        for item in items:
            snapshot = cls.compute_status(item.subtarefas, calendar=calendar)
            rows.append({
                'id': item.id,
                'status': snapshot.status.value,
                'start_real': snapshot.start_real,
                'end_real': snapshot.end_real,
                'planned_end': _as_local(item.planned_end, calendar),
            })

        df = pd.DataFrame(rows)
        for col in ['start_real', 'end_real', 'planned_end']:
            df[col] = pd.to_datetime(df[col], utc=True)

        total = len(df)
        concluidos = (df['status'] == RoadmapStatus.DESENVOLVIDO.value).sum()

        com_datas = df.dropna(subset=['start_real', 'end_real'])
        duracoes = (com_datas['end_real'] - com_datas['start_real']).dt.total_seconds() / SEGUNDOS_POR_DIA
        tempo_medio_real = _media_dias(duracoes)

        atrasados = df.dropna(subset=['end_real', 'planned_end'])
        atrasados = atrasados[atrasados['end_real'] > atrasados['planned_end']]
        atrasos = (atrasados['end_real'] - atrasados['planned_end']).dt.total_seconds() / SEGUNDOS_POR_DIA
        atraso_medio = _media_dias(atrasos)

        logger.info(
            f"[RoadmapKPIs] {total} itens, {concluidos} concluídos, "
            f"{len(duracoes)} com datas reais, {len(atrasos)} atrasados"
        )

        return Kpis(
            total=total,
            concluidos=concluidos,
            percentual_concluido=round_half_up(concluidos / total * 100),
            tempo_medio_real=tempo_medio_real,
            atraso_medio=atraso_medio,
        )

    @classmethod
    def calculate_planning_status(cls, item: RoadmapItem,
                                  hoje: Optional[datetime] = None,
                                  calendar: Optional[WorkCalendar] = None) -> RoadmapPlanningStatus:
        """
        Status do item quanto à posição em sprint.

        - NAO_PLANEJADA: fora de sprint (EM_ATRASO se a última subtarefa já venceu)
        - EM_SPRINT: em sprint ativa
        - ENTREGUE: status do backlog FEITO ou VALIDADO
        - EM_ATRASO: não finalizado e fim da sprint ou da última subtarefa já passou
        - EM_PLANEJAMENTO: em sprint ainda não ativa
        """
        calendar = calendar or default_calendar
        hoje = _inicio_do_dia(hoje or get_brasilia_now(), calendar)
        finalizado = item.status_backlog.is_finished
        maior_fim = _maior_fim_subtarefas(item.subtarefas, calendar)
        fim_sprint = _as_local(item.sprint_data_fim, calendar)

        if not item.sprint_id:
            if maior_fim and maior_fim < hoje and not finalizado:
                return RoadmapPlanningStatus.EM_ATRASO
            return RoadmapPlanningStatus.NAO_PLANEJADA

        if item.sprint_status == SprintStatus.ATIVO:
            if finalizado:
                return RoadmapPlanningStatus.ENTREGUE
            if (fim_sprint and fim_sprint < hoje) or (maior_fim and maior_fim < hoje):
                return RoadmapPlanningStatus.EM_ATRASO
            return RoadmapPlanningStatus.EM_SPRINT

        if item.sprint_status == SprintStatus.CONCLUIDO and not finalizado:
            if (fim_sprint and fim_sprint < hoje) or (maior_fim and maior_fim < hoje):
                return RoadmapPlanningStatus.EM_ATRASO

        if finalizado:
            return RoadmapPlanningStatus.ENTREGUE

        return RoadmapPlanningStatus.EM_PLANEJAMENTO

    @classmethod
    def get_data_inicio(cls, item: RoadmapItem,
                        calendar: Optional[WorkCalendar] = None) -> Optional[datetime]:
        """Menor início das subtarefas; sem subtarefas, o início da sprint."""
        inicios = [_as_local(s.inicio, calendar) for s in item.subtarefas if s.inicio is not None]
        if item.subtarefas:
            return min(inicios) if inicios else None
        return _as_local(item.sprint_data_inicio, calendar)

    @classmethod
    def get_data_fim(cls, item: RoadmapItem,
                     calendar: Optional[WorkCalendar] = None) -> Optional[datetime]:
        """Maior fim das subtarefas; sem subtarefas, o fim da sprint."""
        if item.subtarefas:
            return _maior_fim_subtarefas(item.subtarefas, calendar)
        return _as_local(item.sprint_data_fim, calendar)


def _as_local(value, calendar=None):
    if value is None:
        return None
    return (calendar or default_calendar).to_local(value)


def _inicio_do_dia(value: datetime, calendar: WorkCalendar) -> datetime:
    local = calendar.to_local(value)
    return calendar.tz.localize(datetime(local.year, local.month, local.day))


def _maior_fim_subtarefas(subtarefas: List[Subtarefa], calendar=None) -> Optional[datetime]:
    fins = [_as_local(s.fim, calendar) for s in subtarefas if s.fim is not None]
    return max(fins) if fins else None


def _media_dias(dias: pd.Series) -> int:
    if dias.empty:
        return 0
    inteiros = dias.apply(round_half_up)
    return round_half_up(float(inteiros.mean()))


def compute_status(children, override=None, calendar=None):
    return StatusAggregator.compute_status(children, override, calendar)


def calculate_kpis(items, calendar=None):
    return StatusAggregator.calculate_kpis(items, calendar)
