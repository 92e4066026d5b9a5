# Fuso horário civil usado em todas as decisões de calendário
FUSO_HORARIO_PADRAO = 'America/Sao_Paulo'

# Janela de trabalho (08:00-17:00, segunda a sexta)
HORA_INICIO_TRABALHO = 8
HORA_FIM_TRABALHO = 17
HORAS_POR_DIA_UTIL = 9
DIAS_UTEIS_SEMANA = (0, 1, 2, 3, 4)

# Casas decimais para durações em dias úteis
CASAS_DECIMAIS_DURACAO = 2

# Padrões de nova tarefa do cronograma
NOME_NOVA_TAREFA = 'Nova Tarefa'
DURACAO_NOVA_TAREFA = 1

# Formato do campo datetime-local do formulário
FORMATO_INPUT_DATA_HORA = '%Y-%m-%dT%H:%M'

# Rótulos e cores do status derivado das subtarefas
ROTULOS_STATUS_ROADMAP = {
    'NAO_INICIADO': 'NÃO INICIADO',
    'EM_DESENVOLVIMENTO': 'EM DESENVOLVIMENTO',
    'TESTES': 'TESTES',
    'DESENVOLVIDO': 'DESENVOLVIDO',
    'CANCELADO': 'CANCELADO',
}

CORES_STATUS_ROADMAP = {
    'NAO_INICIADO': '#E5E5E5',       # Cinza claro
    'EM_DESENVOLVIMENTO': '#FFF4A3', # Amarelo claro
    'TESTES': '#A3C8F4',             # Azul claro
    'DESENVOLVIDO': '#B5E3B5',       # Verde claro
    'CANCELADO': '#F49B9B',          # Vermelho claro
}

# Rótulos e cores do status de planejamento (posição em sprint)
ROTULOS_STATUS_PLANEJAMENTO = {
    'EM_SPRINT': 'EM SPRINT',
    'NAO_PLANEJADA': 'NÃO PLANEJADA',
    'EM_PLANEJAMENTO': 'EM PLANEJAMENTO',
    'ENTREGUE': 'ENTREGUE',
    'EM_ATRASO': 'EM ATRASO',
}

CORES_STATUS_PLANEJAMENTO = {
    'ENTREGUE': '#B5E3B5',
    'EM_ATRASO': '#F49B9B',
    'EM_PLANEJAMENTO': '#E5C3A3',
    'NAO_PLANEJADA': '#E5E5E5',
    'EM_SPRINT': '#FFF4A3',
}

COR_STATUS_PADRAO = '#F3F4F6'
