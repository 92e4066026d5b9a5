"""
Funções de conversão entre os registros recebidos (JSON) e os tipos do motor.
"""

from datetime import datetime, date
import logging

from .working_days import default_calendar

logger = logging.getLogger(__name__)


def parse_instant(value, calendar=None):
    """
    Converte valor de entrada em datetime com fuso.

    Aceita datetime, date (início do dia), texto ISO 8601 ou texto do campo
    datetime-local. Vazio ou None retorna None.
    """
    calendar = calendar or default_calendar
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return calendar.to_local(value)
    if isinstance(value, date):
        return calendar.to_local(datetime(value.year, value.month, value.day))
    if isinstance(value, str):
        try:
            return calendar.parse_datetime_from_input(value)
        except ValueError:
            logger.warning(f"[Serializers] Data/hora inválida recebida: {value!r}")
            raise ValueError(f"Data/hora inválida: {value!r}")
    raise ValueError(f"Tipo de data/hora não suportado: {type(value).__name__}")


def parse_decimal(value):
    """Converte duração (número ou texto, aceita vírgula decimal). Vazio ou None retorna None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Valor numérico inválido: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text.replace(',', '.'))
    except ValueError:
        raise ValueError(f"Valor numérico inválido: {value!r}")


def serialize_tree_node(node):
    """Serializa um TaskNode recursivamente."""
    data = node.task.to_dict()
    data['level'] = node.level
    data['children'] = [serialize_tree_node(child) for child in node.children]
    return data


def serialize_status_snapshot(snapshot):
    """Campos do snapshot para o jsonify; enum e instantes seguem crus para o JSON provider."""
    return {
        'status': snapshot.status,
        'status_label': snapshot.label,
        'status_color': snapshot.color,
        'start_real': snapshot.start_real,
        'end_real': snapshot.end_real,
        'percent_complete': snapshot.percent_complete,
        'total': snapshot.total,
        'doing': snapshot.doing,
        'done': snapshot.done,
        'validated': snapshot.validated,
        'concluidas': snapshot.concluidas,
    }
