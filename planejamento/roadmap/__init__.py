from flask import Blueprint

# Blueprint do roadmap: status derivado das subtarefas e KPIs do painel
roadmap_bp = Blueprint('roadmap', __name__, url_prefix='/roadmap')

# Importa as rotas no final para evitar importações circulares
from . import routes
