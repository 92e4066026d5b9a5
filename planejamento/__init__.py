# -*- coding: utf-8 -*-
# planejamento/__init__.py

from flask import Flask, jsonify, current_app
import logging
import os
from pathlib import Path

from .utils.json_provider import PlanejamentoJSONProvider
from .utils.working_days import WorkCalendar, WorkCalendarConfig
from .utils.constants import (
    FUSO_HORARIO_PADRAO, HORA_INICIO_TRABALHO, HORA_FIM_TRABALHO,
    HORAS_POR_DIA_UTIL, DIAS_UTEIS_SEMANA
)

# Define o diretório base da aplicação
BASE_DIR = Path(__file__).parent.parent

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s [in %(pathname)s:%(lineno)d]'


class MarkdownFilter(logging.Filter):
    def filter(self, record):
        if hasattr(record, 'markdown'):
            record.msg = f"\n---\n{record.msg}\n---\n"
        return True


def get_work_calendar():
    """Calendário de trabalho do app atual."""
    return current_app.extensions['work_calendar']


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'sim', 'yes', 'on')


def load_config(app, test_config=None):
    """Carrega configuração padrão, variáveis de ambiente e, por último, test_config."""
    app.config.from_mapping(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev_secret_key'),
        LOG_LEVEL=os.environ.get('LOG_LEVEL', 'DEBUG'),
        LOG_TO_FILE=_env_bool('LOG_TO_FILE', True),
        LOG_DIR=os.environ.get('LOG_DIR', str(BASE_DIR / 'logs')),
        WORK_TIMEZONE=os.environ.get('WORK_TIMEZONE', FUSO_HORARIO_PADRAO),
        WORK_START_HOUR=os.environ.get('WORK_START_HOUR', HORA_INICIO_TRABALHO),
        WORK_END_HOUR=os.environ.get('WORK_END_HOUR', HORA_FIM_TRABALHO),
        WORK_HOURS_PER_DAY=os.environ.get('WORK_HOURS_PER_DAY', HORAS_POR_DIA_UTIL),
        WORK_WEEKDAYS=os.environ.get('WORK_WEEKDAYS', DIAS_UTEIS_SEMANA),
    )
    if test_config is not None:
        app.config.from_mapping(test_config)


def configure_logging(app):
    log_level = getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.DEBUG)
    log_format = logging.Formatter(LOG_FORMAT)

    # app.logger é o logger 'planejamento', pai dos loggers dos serviços,
    # compartilhado por todas as instâncias criadas no mesmo processo
    for handler in list(app.logger.handlers):
        app.logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(log_format)
    stream_handler.setLevel(log_level)
    app.logger.addHandler(stream_handler)

    log_file = None
    if app.config['LOG_TO_FILE']:
        log_dir = Path(app.config['LOG_DIR'])
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / 'app.log'

        # FileHandler simples, sem rotação
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(log_format)
        file_handler.setLevel(log_level)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(log_level)
    if not any(isinstance(f, MarkdownFilter) for f in app.logger.filters):
        app.logger.addFilter(MarkdownFilter())

    app.logger.info("Aplicação Flask criada e logging configurado.")
    if log_file:
        app.logger.info(f"Logs sendo escritos em: {log_file}")


def register_blueprints(app):
    """Registra todos os blueprints da aplicação."""
    app.logger.info("Registrando blueprints...")

    try:
        from .cronograma import cronograma_bp
        app.register_blueprint(cronograma_bp)
        app.logger.info("✅ Blueprint 'cronograma' registrado")
    except ImportError as e:
        app.logger.error(f"❌ Erro ao importar ou registrar blueprint 'cronograma': {e}", exc_info=True)

    try:
        from .roadmap import roadmap_bp
        app.register_blueprint(roadmap_bp)
        app.logger.info("✅ Blueprint 'roadmap' registrado")
    except ImportError as e:
        app.logger.error(f"❌ Erro ao importar ou registrar blueprint 'roadmap': {e}", exc_info=True)


def create_app(test_config=None):
    """Cria e configura a instância da aplicação Flask."""
    app = Flask(__name__)

    load_config(app, test_config)
    configure_logging(app)

    # Configuração do JSON Provider
    app.json = PlanejamentoJSONProvider(app)

    # Calendário imutável compartilhado pelas requisições
    calendar = WorkCalendar(WorkCalendarConfig.from_mapping(app.config))
    app.extensions['work_calendar'] = calendar
    app.logger.info(f"Calendário de trabalho: {calendar!r} dias úteis={calendar.config.work_weekdays}")

    from . import error_handlers
    error_handlers.register_error_handlers(app)

    from . import commands
    commands.register_commands(app)

    register_blueprints(app)

    @app.route('/')
    def index():
        rotas = sorted(
            str(rule) for rule in app.url_map.iter_rules()
            if rule.endpoint != 'static'
        )
        return jsonify({'app': 'planejamento', 'rotas': rotas})

    return app
