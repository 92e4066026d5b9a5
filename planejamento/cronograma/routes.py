from flask import jsonify, request, current_app

from . import cronograma_bp
from .schedule_service import ScheduleService
from .. import get_work_calendar
from ..models import ScheduleTask
from ..utils.serializers import (
    parse_instant, parse_decimal, serialize_tree_node
)


def _get_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Corpo da requisição deve ser um objeto JSON")
    return data


def _require(data, key):
    if data.get(key) in (None, ''):
        raise ValueError(f"Campo obrigatório ausente: '{key}'")
    return data[key]


def _load_tasks(data, calendar):
    raw_tasks = data.get('tasks') or []
    if not isinstance(raw_tasks, list):
        raise ValueError("'tasks' deve ser uma lista")
    return [ScheduleTask.from_dict(t, calendar) for t in raw_tasks]


# --- Calendário de trabalho ---

@cronograma_bp.route('/api/calendario/ajustar', methods=['POST'])
def ajustar_horario():
    calendar = get_work_calendar()
    data = _get_payload()
    instant = parse_instant(_require(data, 'instant'), calendar)
    adjusted = calendar.adjust_to_working_time(instant)
    return jsonify({
        'instant': adjusted,
        'input_value': calendar.format_datetime_for_input(adjusted)
    })


@cronograma_bp.route('/api/calendario/adicionar', methods=['POST'])
def adicionar_dias_uteis():
    calendar = get_work_calendar()
    data = _get_payload()
    start = parse_instant(_require(data, 'start'), calendar)
    duration_days = parse_decimal(_require(data, 'duration_days'))
    if duration_days is None:
        raise ValueError("Duração vazia")
    end = calendar.add_working_days(start, duration_days)
    current_app.logger.info(f"[Calendario] {start.isoformat()} + {duration_days} dias úteis = {end.isoformat()}")
    return jsonify({'end': end})


@cronograma_bp.route('/api/calendario/dias-uteis', methods=['POST'])
def calcular_dias_uteis():
    calendar = get_work_calendar()
    data = _get_payload()
    start = parse_instant(_require(data, 'start'), calendar)
    end = parse_instant(_require(data, 'end'), calendar)
    return jsonify({'duration_days': calendar.calculate_working_days(start, end)})


# --- Tarefas do cronograma ---

@cronograma_bp.route('/api/tarefas/atualizar-campo', methods=['POST'])
def atualizar_campo():
    calendar = get_work_calendar()
    data = _get_payload()
    task_data = _require(data, 'task')
    if not isinstance(task_data, dict):
        raise ValueError("'task' deve ser um objeto")
    task = ScheduleTask.from_dict(task_data, calendar)
    field_name = _require(data, 'field')

    current_app.logger.info(f"Atualizando campo '{field_name}' da tarefa {task.id}")
    patch = ScheduleService(calendar).update_schedule_field(task, field_name, data.get('value'))
    return jsonify({'patch': patch})


@cronograma_bp.route('/api/tarefas/<string:task_id>/indentar', methods=['POST'])
def indentar_tarefa(task_id):
    calendar = get_work_calendar()
    tasks = _load_tasks(_get_payload(), calendar)
    patch = ScheduleService(calendar).indent(task_id, tasks)
    if not patch:
        current_app.logger.info(f"Não há tarefa anterior para indentar {task_id}")
    return jsonify({'patch': patch})


@cronograma_bp.route('/api/tarefas/<string:task_id>/recuar', methods=['POST'])
def recuar_tarefa(task_id):
    calendar = get_work_calendar()
    tasks = _load_tasks(_get_payload(), calendar)
    return jsonify({'patch': ScheduleService(calendar).outdent(task_id, tasks)})


@cronograma_bp.route('/api/tarefas/nova', methods=['POST'])
def nova_tarefa():
    calendar = get_work_calendar()
    data = _get_payload()
    project_id = _require(data, 'project_id')
    tasks = _load_tasks(data, calendar)
    task = ScheduleService(calendar).new_schedule_task(project_id, tasks)
    return jsonify({'task': task.to_dict()}), 201


@cronograma_bp.route('/api/arvore', methods=['POST'])
def montar_arvore():
    calendar = get_work_calendar()
    data = _get_payload()
    tasks = _load_tasks(data, calendar)
    service = ScheduleService(calendar)
    roots = service.build_tree(tasks)

    expanded = data.get('expanded')
    expanded_ids = {str(i) for i in expanded} if expanded is not None else None
    rows = [
        {'id': task.id, 'name': task.name, 'level': level, 'is_summary': task.is_summary}
        for task, level in service.flatten_tree(roots, expanded_ids)
    ]
    return jsonify({
        'tree': [serialize_tree_node(node) for node in roots],
        'rows': rows
    })
