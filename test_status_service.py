#!/usr/bin/env python3
"""
Testes do status derivado do roadmap e dos KPIs do painel.
"""

from datetime import datetime, timedelta

import pytz

from planejamento.models import (
    RoadmapItem, RoadmapPlanningStatus, RoadmapStatus, SprintStatus,
    Subtarefa, SubtaskStatus
)
from planejamento.roadmap.status_service import (
    StatusAggregator, calculate_kpis, compute_status, status_color, status_label
)
from planejamento.utils.working_days import WorkCalendar, WorkCalendarConfig

tz = pytz.timezone('America/Sao_Paulo')


def local(year, month, day, hour=0, minute=0):
    return tz.localize(datetime(year, month, day, hour, minute))


def sub(status, inicio=None, fim=None, sub_id='s'):
    return Subtarefa(id=sub_id, titulo=f'Subtarefa {sub_id}', status=SubtaskStatus(status),
                     inicio=inicio, fim=fim)


# --- Status derivado ---

def test_todas_validadas():
    print("🔍 Testando status derivado...")

    snapshot = compute_status([sub('validated'), sub('validated'), sub('validated')])
    assert snapshot.status == RoadmapStatus.DESENVOLVIDO
    assert snapshot.percent_complete == 100
    assert snapshot.validated == 3
    print("✅ Todas validadas -> DESENVOLVIDO 100%")


def test_feitas_e_a_fazer():
    snapshot = compute_status([sub('done'), sub('done'), sub('todo')])
    assert snapshot.status == RoadmapStatus.EM_DESENVOLVIMENTO
    assert snapshot.percent_complete == 0
    assert snapshot.concluidas == 2
    print("✅ {done, done, todo} -> EM_DESENVOLVIMENTO")


def test_validada_e_feita_em_testes():
    snapshot = compute_status([
        sub('validated', local(2025, 1, 1), local(2025, 1, 5), 'v'),
        sub('done', local(2025, 1, 2), local(2025, 1, 6), 'd'),
    ])
    assert snapshot.status == RoadmapStatus.TESTES
    assert snapshot.percent_complete == 50
    assert snapshot.start_real == local(2025, 1, 1)
    # Fim real considera só as validadas
    assert snapshot.end_real == local(2025, 1, 5)
    print("✅ {validated, done} -> TESTES 50%, 01/01 a 05/01")


def test_sem_subtarefas():
    snapshot = compute_status([])
    assert snapshot.status == RoadmapStatus.NAO_INICIADO
    assert snapshot.percent_complete == 0
    assert snapshot.start_real is None
    assert snapshot.end_real is None
    assert snapshot.total == 0
    print("✅ Sem subtarefas -> NAO_INICIADO")


def test_a_fazer_e_em_andamento():
    assert compute_status([sub('todo'), sub('todo')]).status == RoadmapStatus.NAO_INICIADO
    assert compute_status([sub('todo'), sub('doing')]).status == RoadmapStatus.EM_DESENVOLVIMENTO
    print("✅ Nenhuma iniciada -> NAO_INICIADO; alguma iniciada -> EM_DESENVOLVIMENTO")


def test_datas_ausentes_ignoradas():
    snapshot = compute_status([
        sub('validated', None, local(2025, 2, 10), 'a'),
        sub('validated', local(2025, 2, 3), None, 'b'),
        sub('doing', local(2025, 2, 1), None, 'c'),
    ])
    assert snapshot.start_real == local(2025, 2, 1)
    assert snapshot.end_real == local(2025, 2, 10)
    print("✅ Datas ausentes não afetam início/fim reais")


def test_percentual_arredondado():
    assert compute_status([sub('validated'), sub('validated'), sub('todo')]).percent_complete == 67
    assert compute_status([sub('validated'), sub('todo'), sub('todo')]).percent_complete == 33
    oito = [sub('validated')] + [sub('todo') for _ in range(7)]
    assert compute_status(oito).percent_complete == 13
    print("✅ Percentual arredondado meio para cima")


def test_override_cancelado():
    snapshot = compute_status([sub('validated'), sub('todo')], override=RoadmapStatus.CANCELADO)
    assert snapshot.status == RoadmapStatus.CANCELADO
    assert snapshot.percent_complete == 50
    assert compute_status([], override=RoadmapStatus.CANCELADO).status == RoadmapStatus.CANCELADO
    print("✅ CANCELADO só via override")


def test_rotulos_e_cores():
    assert status_label(RoadmapStatus.NAO_INICIADO) == 'NÃO INICIADO'
    assert status_label(RoadmapPlanningStatus.NAO_PLANEJADA) == 'NÃO PLANEJADA'
    assert status_color(RoadmapStatus.DESENVOLVIDO) == '#B5E3B5'
    assert compute_status([sub('doing')]).label == 'EM DESENVOLVIMENTO'
    print("✅ Rótulos e cores dos status")


def test_status_de_subtarefa_por_texto():
    assert SubtaskStatus.from_value('DONE') == SubtaskStatus.DONE
    assert SubtaskStatus.from_value(None) == SubtaskStatus.TODO
    try:
        SubtaskStatus.from_value('arquivada')
        assert False, "Status desconhecido deveria ser rejeitado"
    except ValueError:
        pass

    item = Subtarefa.from_dict({'id': 1, 'status': 'validated', 'inicio': '2025-01-01', 'fim': '2025-01-05'})
    assert item.status == SubtaskStatus.VALIDATED
    assert item.inicio == local(2025, 1, 1)
    print("✅ Status de subtarefa aceito por valor ou nome")


# --- KPIs ---

def _item(item_id, subtarefas, **kwargs):
    return RoadmapItem(id=item_id, titulo=f'Item {item_id}', subtarefas=subtarefas, **kwargs)


def test_kpis_sem_itens():
    kpis = calculate_kpis([])
    assert kpis.to_dict() == {
        'total': 0, 'concluidos': 0, 'percentual_concluido': 0,
        'tempo_medio_real': 0, 'atraso_medio': 0
    }
    print("✅ KPIs zerados sem itens")


def test_kpis_atraso_so_de_itens_atrasados():
    print("\n🔍 Testando KPIs do roadmap...")

    items = [
        # 4 dias, terminou exatamente no fim planejado
        _item('no_prazo', [sub('validated', local(2025, 1, 1), local(2025, 1, 5))],
              data_fim_planejada=local(2025, 1, 5)),
        # 8 dias, 3 dias de atraso
        _item('atrasado', [sub('validated', local(2025, 1, 2), local(2025, 1, 10))],
              data_fim_planejada=local(2025, 1, 7)),
        # 2 dias, adiantado
        _item('adiantado', [sub('validated', local(2025, 1, 1), local(2025, 1, 3))],
              data_fim_planejada=local(2025, 1, 10)),
        _item('parado', [sub('todo')]),
    ]
    kpis = calculate_kpis(items)

    assert kpis.total == 4
    assert kpis.concluidos == 3
    assert kpis.percentual_concluido == 75
    # média de 4, 8 e 2 = 4.67
    assert kpis.tempo_medio_real == 5
    assert kpis.atraso_medio == 3, f"Itens no prazo ou adiantados não entram no atraso: {kpis.atraso_medio}"
    print("✅ Atraso médio só considera itens que terminaram depois do planejado")


def test_kpis_fim_planejado_da_sprint():
    items = [
        _item('sprint', [sub('validated', local(2025, 3, 3), local(2025, 3, 14))],
              sprint_id='S1', sprint_data_fim=local(2025, 3, 12)),
        _item('sem_datas', [sub('done')]),
    ]
    kpis = calculate_kpis(items)

    assert kpis.concluidos == 1
    assert kpis.percentual_concluido == 50
    assert kpis.tempo_medio_real == 11
    assert kpis.atraso_medio == 2
    print("✅ Sem data planejada, usa o fim da sprint")


def test_kpis_sem_nenhum_atraso():
    items = [
        _item('a', [sub('validated', local(2025, 1, 1), local(2025, 1, 5))],
              data_fim_planejada=local(2025, 1, 5)),
    ]
    kpis = StatusAggregator.calculate_kpis(items)
    assert kpis.atraso_medio == 0
    assert kpis.tempo_medio_real == 4
    assert kpis.percentual_concluido == 100
    print("✅ Nenhum item atrasado -> atraso médio 0")


# --- Status de planejamento ---

HOJE = local(2025, 1, 10, 15)


def test_planejamento_fora_de_sprint():
    print("\n🔍 Testando status de planejamento...")

    assert StatusAggregator.calculate_planning_status(_item('a', []), HOJE) == RoadmapPlanningStatus.NAO_PLANEJADA

    vencido = _item('b', [sub('doing', local(2025, 1, 2), local(2025, 1, 5))])
    assert StatusAggregator.calculate_planning_status(vencido, HOJE) == RoadmapPlanningStatus.EM_ATRASO

    feito = _item('c', [sub('done', local(2025, 1, 2), local(2025, 1, 5))],
                  status_backlog=SubtaskStatus.DONE)
    assert StatusAggregator.calculate_planning_status(feito, HOJE) == RoadmapPlanningStatus.NAO_PLANEJADA
    print("✅ Fora de sprint: NAO_PLANEJADA ou EM_ATRASO")


def test_planejamento_sprint_ativa():
    no_prazo = _item('a', [], sprint_id='S1', sprint_status=SprintStatus.ATIVO,
                     sprint_data_fim=local(2025, 1, 17))
    assert StatusAggregator.calculate_planning_status(no_prazo, HOJE) == RoadmapPlanningStatus.EM_SPRINT

    # Sprint termina hoje: ainda não atrasou
    termina_hoje = _item('b', [], sprint_id='S1', sprint_status=SprintStatus.ATIVO,
                         sprint_data_fim=local(2025, 1, 10))
    assert StatusAggregator.calculate_planning_status(termina_hoje, HOJE) == RoadmapPlanningStatus.EM_SPRINT

    vencida = _item('c', [], sprint_id='S1', sprint_status=SprintStatus.ATIVO,
                    sprint_data_fim=local(2025, 1, 3))
    assert StatusAggregator.calculate_planning_status(vencida, HOJE) == RoadmapPlanningStatus.EM_ATRASO

    entregue = _item('d', [], sprint_id='S1', sprint_status=SprintStatus.ATIVO,
                     sprint_data_fim=local(2025, 1, 3), status_backlog=SubtaskStatus.VALIDATED)
    assert StatusAggregator.calculate_planning_status(entregue, HOJE) == RoadmapPlanningStatus.ENTREGUE
    print("✅ Sprint ativa: EM_SPRINT, EM_ATRASO ou ENTREGUE")


def test_planejamento_sprint_futura_e_concluida():
    futura = _item('a', [], sprint_id='S2', sprint_status=SprintStatus.PLANEJAMENTO,
                   sprint_data_fim=local(2025, 1, 31))
    assert StatusAggregator.calculate_planning_status(futura, HOJE) == RoadmapPlanningStatus.EM_PLANEJAMENTO

    concluida = _item('b', [], sprint_id='S0', sprint_status=SprintStatus.CONCLUIDO,
                      sprint_data_fim=local(2025, 1, 3))
    assert StatusAggregator.calculate_planning_status(concluida, HOJE) == RoadmapPlanningStatus.EM_ATRASO

    concluida_feita = _item('c', [], sprint_id='S0', sprint_status=SprintStatus.CONCLUIDO,
                            sprint_data_fim=local(2025, 1, 3), status_backlog=SubtaskStatus.DONE)
    assert StatusAggregator.calculate_planning_status(concluida_feita, HOJE) == RoadmapPlanningStatus.ENTREGUE
    print("✅ Sprint futura: EM_PLANEJAMENTO; concluída: EM_ATRASO ou ENTREGUE")


def test_planejamento_no_fuso_do_calendario():
    """O dia de referência e as datas do item seguem o fuso do calendário recebido"""
    utc = pytz.utc
    calendario_utc = WorkCalendar(WorkCalendarConfig(timezone='UTC'))
    hoje = utc.localize(datetime(2025, 1, 10, 12))
    item = _item('a', [], sprint_id='S1', sprint_status=SprintStatus.ATIVO,
                 sprint_data_fim=utc.localize(datetime(2025, 1, 10, 1)))

    # 01:00 UTC ainda é dia 10 em UTC, mas dia 9 às 22:00 em São Paulo
    assert StatusAggregator.calculate_planning_status(item, hoje, calendario_utc) == RoadmapPlanningStatus.EM_SPRINT
    assert StatusAggregator.calculate_planning_status(item, hoje) == RoadmapPlanningStatus.EM_ATRASO

    data_fim = StatusAggregator.get_data_fim(item, calendario_utc)
    assert data_fim.utcoffset() == timedelta(0)
    assert data_fim.hour == 1

    snapshot = compute_status([sub('validated', local(2025, 1, 6), local(2025, 1, 8))], calendar=calendario_utc)
    assert snapshot.start_real.utcoffset() == timedelta(0)
    assert snapshot.start_real.hour == 3
    print("✅ Status de planejamento no fuso do calendário (UTC)")


def test_datas_do_item():
    com_subtarefas = _item('a', [
        sub('done', local(2025, 1, 6), local(2025, 1, 8), 'x'),
        sub('todo', local(2025, 1, 2), local(2025, 1, 9), 'y'),
    ], sprint_data_inicio=local(2025, 1, 1), sprint_data_fim=local(2025, 1, 31))
    assert StatusAggregator.get_data_inicio(com_subtarefas) == local(2025, 1, 2)
    assert StatusAggregator.get_data_fim(com_subtarefas) == local(2025, 1, 9)

    sem_subtarefas = _item('b', [], sprint_data_inicio=local(2025, 1, 1), sprint_data_fim=local(2025, 1, 31))
    assert StatusAggregator.get_data_inicio(sem_subtarefas) == local(2025, 1, 1)
    assert StatusAggregator.get_data_fim(sem_subtarefas) == local(2025, 1, 31)
    print("✅ Datas do item pelas subtarefas, senão pela sprint")


def test_item_a_partir_de_dicionario():
    item = RoadmapItem.from_dict({
        'id': 10,
        'status_backlog': 'DONE',
        'sprint_id': 'S1',
        'sprint_status': 'ativo',
        'sprint_data_fim': '2025-01-17',
        'subtarefas': [{'id': 1, 'status': 'done', 'fim': '2025-01-08T17:00'}],
    })
    assert item.id == '10'
    assert item.titulo == 'Sem título'
    assert item.status_backlog == SubtaskStatus.DONE
    assert item.sprint_status == SprintStatus.ATIVO
    assert item.planned_end == local(2025, 1, 17)
    assert item.subtarefas[0].fim == local(2025, 1, 8, 17)
    print("✅ Conversão de itens do roadmap")


def run_tests():
    """Executa todos os testes"""
    print("🚀 Executando testes de status do roadmap\n")

    tests = [
        test_todas_validadas,
        test_feitas_e_a_fazer,
        test_validada_e_feita_em_testes,
        test_sem_subtarefas,
        test_a_fazer_e_em_andamento,
        test_datas_ausentes_ignoradas,
        test_percentual_arredondado,
        test_override_cancelado,
        test_rotulos_e_cores,
        test_status_de_subtarefa_por_texto,
        test_kpis_sem_itens,
        test_kpis_atraso_so_de_itens_atrasados,
        test_kpis_fim_planejado_da_sprint,
        test_kpis_sem_nenhum_atraso,
        test_planejamento_fora_de_sprint,
        test_planejamento_sprint_ativa,
        test_planejamento_sprint_futura_e_concluida,
        test_planejamento_no_fuso_do_calendario,
        test_datas_do_item,
        test_item_a_partir_de_dicionario,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"❌ Erro no teste {test.__name__}: {e}")
            failed += 1

    print(f"\n📊 Resultados: {passed} passou(ram), {failed} falhou(aram)")
    return failed == 0


if __name__ == "__main__":
    run_tests()
