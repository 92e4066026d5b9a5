from flask import jsonify, request, current_app

from . import roadmap_bp
from .status_service import StatusAggregator, status_label, status_color
from .. import get_work_calendar
from ..models import RoadmapItem, RoadmapStatus, Subtarefa
from ..utils.serializers import parse_instant, serialize_status_snapshot


def _get_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Corpo da requisição deve ser um objeto JSON")
    return data


def _get_list(data, key):
    values = data.get(key) or []
    if not isinstance(values, list):
        raise ValueError(f"'{key}' deve ser uma lista")
    return values


@roadmap_bp.route('/api/status', methods=['POST'])
def status_item():
    """Status derivado de um item a partir das suas subtarefas."""
    calendar = get_work_calendar()
    data = _get_payload()
    subtarefas = [Subtarefa.from_dict(s, calendar) for s in _get_list(data, 'subtarefas')]

    override = data.get('override')
    override = RoadmapStatus(override) if override else None

    snapshot = StatusAggregator.compute_status(subtarefas, override, calendar)
    return jsonify(serialize_status_snapshot(snapshot))


@roadmap_bp.route('/api/kpis', methods=['POST'])
def kpis_roadmap():
    calendar = get_work_calendar()
    items = [RoadmapItem.from_dict(i, calendar) for i in _get_list(_get_payload(), 'items')]
    kpis = StatusAggregator.calculate_kpis(items, calendar)
    current_app.logger.info(f"KPIs do roadmap calculados para {kpis.total} itens")
    return jsonify(kpis.to_dict())


@roadmap_bp.route('/api/itens/status', methods=['POST'])
def status_itens():
    """Status derivado, status de planejamento e datas de cada item do roadmap."""
    calendar = get_work_calendar()
    data = _get_payload()
    items = [RoadmapItem.from_dict(i, calendar) for i in _get_list(data, 'items')]
    hoje = parse_instant(data.get('hoje'), calendar)

    resultado = []
    for item in items:
        snapshot = StatusAggregator.compute_status(item.subtarefas, calendar=calendar)
        planejamento = StatusAggregator.calculate_planning_status(item, hoje, calendar)
        resultado.append({
            'id': item.id,
            'titulo': item.titulo,
            'status': serialize_status_snapshot(snapshot),
            'status_planejamento': planejamento,
            'status_planejamento_label': status_label(planejamento),
            'status_planejamento_color': status_color(planejamento),
            'data_inicio': StatusAggregator.get_data_inicio(item, calendar),
            'data_fim': StatusAggregator.get_data_fim(item, calendar),
        })

    return jsonify({'items': resultado})
