# planejamento/utils/json_provider.py
"""
Serialização JSON das respostas da API.

As rotas entregam ao jsonify os valores do motor sem conversão prévia:
instantes com fuso, enums de status e os escalares numpy que saem da
agregação dos KPIs com pandas.
"""
import enum
import logging
from datetime import date, datetime

import numpy as np
import pandas as pd
from flask.json.provider import DefaultJSONProvider

logger = logging.getLogger(__name__)


class PlanejamentoJSONProvider(DefaultJSONProvider):
    """
    Instantes em ISO 8601 com offset (o padrão do Flask usaria data HTTP em GMT),
    status pelo valor ('done', 'TESTES', 'EM_SPRINT') e numpy como Python nativo.
    """
    ensure_ascii = False

    @staticmethod
    def default(o):
        if isinstance(o, enum.Enum):
            return o.value
        if isinstance(o, (pd.Timestamp, datetime, date)):
            return None if pd.isna(o) else o.isoformat()
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return None if np.isnan(o) else float(o)
        if isinstance(o, np.bool_):
            return bool(o)

        try:
            return DefaultJSONProvider.default(o)
        except TypeError:
            logger.error(f"[JSON] Tipo não serializável na resposta: {type(o).__name__}")
            raise
