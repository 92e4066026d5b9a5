from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

from .utils.exceptions import PlanejamentoError


def handle_planejamento_error(e):
    # Regra de negócio violada: dados coerentes no formato, inválidos no conteúdo
    return jsonify({'error': str(e), 'tipo': type(e).__name__}), 422


def handle_value_error(e):
    return jsonify({'error': str(e)}), 400


def handle_http_error(e):
    return jsonify({'error': e.description}), e.code


def handle_errors(e):
    current_app.logger.error(f"Erro inesperado: {e}", exc_info=True)
    return jsonify({'error': f"Erro inesperado: {str(e)}"}), 500


def register_error_handlers(app):
    app.register_error_handler(PlanejamentoError, handle_planejamento_error)
    app.register_error_handler(ValueError, handle_value_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_errors)
