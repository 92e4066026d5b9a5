"""
Aritmética de datas em horário útil.

Converte instantes de relógio em instantes ajustados ao expediente e soma ou
mede durações contando apenas as horas dentro da janela de trabalho dos dias
úteis. Todas as decisões de calendário (dia da semana, hora) usam o horário
civil do fuso configurado.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Mapping, Optional, Tuple

import pytz

from .constants import (
    FUSO_HORARIO_PADRAO, HORA_INICIO_TRABALHO, HORA_FIM_TRABALHO,
    HORAS_POR_DIA_UTIL, DIAS_UTEIS_SEMANA, CASAS_DECIMAIS_DURACAO,
    FORMATO_INPUT_DATA_HORA
)
from .exceptions import InvalidCalendarConfigError, NegativeDurationError
from .rounding import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkCalendarConfig:
    """Parâmetros imutáveis do calendário de trabalho."""

    timezone: str = FUSO_HORARIO_PADRAO
    work_start_hour: int = HORA_INICIO_TRABALHO
    work_end_hour: int = HORA_FIM_TRABALHO
    hours_per_workday: float = HORAS_POR_DIA_UTIL
    work_weekdays: Tuple[int, ...] = field(default=DIAS_UTEIS_SEMANA)

    def __post_init__(self):
        if not 0 <= self.work_start_hour < self.work_end_hour <= 24:
            raise InvalidCalendarConfigError(
                f"Janela de trabalho inválida: {self.work_start_hour}h-{self.work_end_hour}h"
            )
        if self.hours_per_workday <= 0:
            raise InvalidCalendarConfigError(
                f"Horas por dia útil devem ser positivas: {self.hours_per_workday}"
            )
        weekdays = tuple(sorted(set(int(d) for d in self.work_weekdays)))
        if not weekdays or any(d < 0 or d > 6 for d in weekdays):
            raise InvalidCalendarConfigError(f"Dias úteis inválidos: {self.work_weekdays}")
        object.__setattr__(self, 'work_weekdays', weekdays)
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise InvalidCalendarConfigError(f"Fuso horário desconhecido: {self.timezone}")

    @classmethod
    def from_mapping(cls, config: Mapping) -> 'WorkCalendarConfig':
        """
        Monta a configuração a partir de um mapeamento no formato do app.config.

        Chaves reconhecidas: WORK_TIMEZONE, WORK_START_HOUR, WORK_END_HOUR,
        WORK_HOURS_PER_DAY e WORK_WEEKDAYS (lista ou texto "0,1,2,3,4").
        """
        weekdays = config.get('WORK_WEEKDAYS', DIAS_UTEIS_SEMANA)
        if isinstance(weekdays, str):
            weekdays = [d for d in weekdays.replace(';', ',').split(',') if d.strip()]
        try:
            return cls(
                timezone=config.get('WORK_TIMEZONE', FUSO_HORARIO_PADRAO),
                work_start_hour=int(config.get('WORK_START_HOUR', HORA_INICIO_TRABALHO)),
                work_end_hour=int(config.get('WORK_END_HOUR', HORA_FIM_TRABALHO)),
                hours_per_workday=float(config.get('WORK_HOURS_PER_DAY', HORAS_POR_DIA_UTIL)),
                work_weekdays=tuple(int(d) for d in weekdays),
            )
        except InvalidCalendarConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidCalendarConfigError(f"Configuração de calendário inválida: {e}")

    @property
    def tz(self):
        return pytz.timezone(self.timezone)


class WorkCalendar:
    """Calendário de trabalho: ajuste de instantes e soma/medição de dias úteis."""

    def __init__(self, config: Optional[WorkCalendarConfig] = None):
        self.config = config or WorkCalendarConfig()
        self.tz = self.config.tz

    def __repr__(self):
        c = self.config
        return f'<WorkCalendar {c.timezone} {c.work_start_hour}h-{c.work_end_hour}h>'

    # --- Conversões de fuso ---

    def to_local(self, instant: datetime) -> datetime:
        """Converte para o fuso do calendário. Instantes sem fuso são tratados como horário civil local."""
        if instant.tzinfo is None:
            return self.tz.localize(instant)
        return instant.astimezone(self.tz)

    def _at_hour(self, local: datetime, hour: int) -> datetime:
        naive = local.replace(tzinfo=None, hour=hour, minute=0, second=0, microsecond=0)
        return self.tz.localize(naive)

    def _next_calendar_day(self, local: datetime) -> datetime:
        return self.tz.localize(local.replace(tzinfo=None) + timedelta(days=1))

    def _add_hours(self, local: datetime, hours: float) -> datetime:
        return self.tz.normalize(local + timedelta(hours=hours))

    def is_working_day(self, instant: datetime) -> bool:
        return self.to_local(instant).weekday() in self.config.work_weekdays

    def is_working_time(self, instant: datetime) -> bool:
        local = self.to_local(instant)
        return (
            local.weekday() in self.config.work_weekdays
            and self.config.work_start_hour <= local.hour < self.config.work_end_hour
        )

    # --- Operações do calendário ---

    def adjust_to_working_time(self, instant: datetime) -> datetime:
        """
        Leva o instante para dentro do expediente.

        Dia não útil: avança até o próximo dia útil, no início do expediente.
        Antes do expediente: mesmo dia, no início do expediente.
        No fim do expediente ou depois: próximo dia útil, no início do expediente.
        """
        start_hour = self.config.work_start_hour
        local = self.to_local(instant)

        if local.weekday() not in self.config.work_weekdays:
            while local.weekday() not in self.config.work_weekdays:
                local = self._next_calendar_day(local)
            return self._at_hour(local, start_hour)

        if local.hour < start_hour:
            local = self._at_hour(local, start_hour)
        elif local.hour >= self.config.work_end_hour:
            local = self._at_hour(self._next_calendar_day(local), start_hour)
            while local.weekday() not in self.config.work_weekdays:
                local = self._next_calendar_day(local)

        return local

    def add_working_days(self, start: datetime, duration_days: float) -> datetime:
        """
        Soma uma duração em dias úteis a partir de start.

        Cada dia consome no máximo (hora de fim - hora atual) horas; a sobra
        segue para o início do expediente do próximo dia útil. Frações de hora
        ficam no mesmo dia.

        Os minutos do início não entram na conta das horas restantes do dia:
        segunda 16:30 + 1/9 de dia (1h) termina segunda 17:30, depois do fim
        do expediente, e não terça 08:30.

        Raises:
            NegativeDurationError: se duration_days for negativo
        """
        duration_days = float(duration_days)
        if duration_days < 0:
            raise NegativeDurationError(start, duration_days=duration_days)

        current = self.adjust_to_working_time(start)
        remaining_hours = duration_days * self.config.hours_per_workday

        while remaining_hours > 0:
            hours_left_in_day = self.config.work_end_hour - current.hour

            if remaining_hours <= hours_left_in_day:
                current = self._add_hours(current, remaining_hours)
                remaining_hours = 0
            else:
                remaining_hours -= hours_left_in_day
                next_day = self._next_calendar_day(self._at_hour(current, self.config.work_start_hour))
                current = self.adjust_to_working_time(next_day)

        return current

    def calculate_working_days(self, start: datetime, end: datetime) -> float:
        """
        Mede a duração em dias úteis entre start e end (2 casas decimais).

        Percorre hora a hora a partir do início ajustado, contando horas cheias
        dentro do expediente e a fração da última hora.

        Raises:
            NegativeDurationError: se end for anterior a start
        """
        start_local = self.to_local(start)
        end_local = self.to_local(end)
        if end_local < start_local:
            raise NegativeDurationError(start_local, end_local)

        current = self.adjust_to_working_time(start_local)
        total_hours = 0.0

        while current < end_local:
            if self.is_working_time(current):
                next_hour = self._add_hours(current, 1)
                if next_hour <= end_local:
                    total_hours += 1
                else:
                    total_hours += (end_local - current).total_seconds() / 3600

            current = self.adjust_to_working_time(self._add_hours(current, 1))

        return round_half_up(total_hours / self.config.hours_per_workday, CASAS_DECIMAIS_DURACAO)

    # --- Formulário ---

    def format_datetime_for_input(self, instant: datetime) -> str:
        """Formata no padrão do campo datetime-local (horário civil do calendário)."""
        return self.to_local(instant).strftime(FORMATO_INPUT_DATA_HORA)

    def parse_datetime_from_input(self, value: str) -> datetime:
        """
        Interpreta texto de formulário ou ISO 8601.

        Sem offset: horário civil do calendário. Com offset ou 'Z': instante absoluto.
        """
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
        return self.to_local(parsed)


# Calendário padrão (08:00-17:00, seg-sex, America/Sao_Paulo)
default_calendar = WorkCalendar()


def adjust_to_working_time(instant: datetime, calendar: Optional[WorkCalendar] = None) -> datetime:
    return (calendar or default_calendar).adjust_to_working_time(instant)


def add_working_days(start: datetime, duration_days: float, calendar: Optional[WorkCalendar] = None) -> datetime:
    return (calendar or default_calendar).add_working_days(start, duration_days)


def calculate_working_days(start: datetime, end: datetime, calendar: Optional[WorkCalendar] = None) -> float:
    return (calendar or default_calendar).calculate_working_days(start, end)


def format_datetime_for_input(instant: datetime, calendar: Optional[WorkCalendar] = None) -> str:
    return (calendar or default_calendar).format_datetime_for_input(instant)


def parse_datetime_from_input(value: str, calendar: Optional[WorkCalendar] = None) -> datetime:
    return (calendar or default_calendar).parse_datetime_from_input(value)
