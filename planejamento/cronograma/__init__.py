from flask import Blueprint

# Blueprint do cronograma: calendário de trabalho e edição da árvore de tarefas
# Os registros chegam no corpo da requisição; a persistência é do chamador
cronograma_bp = Blueprint('cronograma', __name__, url_prefix='/cronograma')

# Importa as rotas no final para evitar importações circulares
from . import routes
