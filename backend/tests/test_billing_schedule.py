"""
Testes da geração de datas de cobrança e vencimentos
"""
from datetime import date
from app.models import BaseCobranca
from app.services.billing_schedule import (
    calcular_total_despesas,
    gerar_datas_cobranca,
    gerar_vencimentos_despesa,
    meses_no_periodo,
)


def test_cobranca_mensal_fim_de_mes_nao_escorrega():
    datas = gerar_datas_cobranca(date(2025, 1, 31), date(2025, 6, 30), BaseCobranca.MENSAL)

    assert datas == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
        date(2025, 5, 31),
        date(2025, 6, 30),
    ]


def test_cobranca_trimestral():
    datas = gerar_datas_cobranca(date(2025, 1, 10), date(2025, 12, 31), BaseCobranca.TRIMESTRAL)
    assert datas == [date(2025, 1, 10), date(2025, 4, 10), date(2025, 7, 10), date(2025, 10, 10)]


def test_cobranca_periodo_invertido():
    assert gerar_datas_cobranca(date(2025, 5, 1), date(2025, 1, 1), BaseCobranca.MENSAL) == []


def test_meses_no_periodo():
    assert meses_no_periodo(date(2025, 1, 15), date(2025, 1, 20)) == 1
    assert meses_no_periodo(date(2024, 11, 1), date(2025, 2, 1)) == 4


def test_total_despesas_arredonda_para_cima():
    assert calcular_total_despesas(date(2025, 1, 1), date(2025, 7, 1), BaseCobranca.BIMESTRAL) == 4
    assert calcular_total_despesas(date(2025, 1, 1), date(2025, 12, 31), BaseCobranca.SEMESTRAL) == 2


def test_vencimentos_limitados_ao_ultimo_dia_do_mes():
    vencimentos = gerar_vencimentos_despesa(date(2025, 1, 15), date(2025, 4, 10), BaseCobranca.MENSAL, 31)
    assert vencimentos == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]


def test_vencimentos_bimestrais():
    vencimentos = gerar_vencimentos_despesa(date(2025, 1, 1), date(2025, 6, 30), BaseCobranca.BIMESTRAL, 10)
    assert vencimentos == [date(2025, 1, 10), date(2025, 3, 10), date(2025, 5, 10)]
