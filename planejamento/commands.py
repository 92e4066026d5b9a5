import click
from flask.cli import with_appcontext

from . import get_work_calendar
from .utils.exceptions import PlanejamentoError
from .utils.serializers import parse_instant, parse_decimal


def _parse_instant_arg(value, param_name):
    try:
        return parse_instant(value, get_work_calendar())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=param_name)


@click.command('ajustar-horario')
@click.argument('instante')
@with_appcontext
def ajustar_horario_command(instante):
    """Mostra o instante ajustado para dentro do expediente."""
    calendar = get_work_calendar()
    ajustado = calendar.adjust_to_working_time(_parse_instant_arg(instante, 'INSTANTE'))
    click.echo(ajustado.isoformat())


@click.command('calcular-fim')
@click.argument('inicio')
@click.argument('duracao')
@with_appcontext
def calcular_fim_command(inicio, duracao):
    """Calcula o fim de uma tarefa a partir do início e da duração em dias úteis."""
    calendar = get_work_calendar()
    start = _parse_instant_arg(inicio, 'INICIO')
    try:
        duration_days = parse_decimal(duracao)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='DURACAO')
    if duration_days is None:
        raise click.BadParameter("Duração vazia", param_hint='DURACAO')
    try:
        fim = calendar.add_working_days(start, duration_days)
    except PlanejamentoError as e:
        raise click.ClickException(str(e))
    click.echo(fim.isoformat())


@click.command('calcular-duracao')
@click.argument('inicio')
@click.argument('fim')
@with_appcontext
def calcular_duracao_command(inicio, fim):
    """Mede a duração em dias úteis entre dois instantes."""
    calendar = get_work_calendar()
    start = _parse_instant_arg(inicio, 'INICIO')
    end = _parse_instant_arg(fim, 'FIM')
    try:
        duracao = calendar.calculate_working_days(start, end)
    except PlanejamentoError as e:
        raise click.ClickException(str(e))
    click.echo(f"{duracao:.2f}")


def register_commands(app):
    app.cli.add_command(ajustar_horario_command)
    app.cli.add_command(calcular_fim_command)
    app.cli.add_command(calcular_duracao_command)
