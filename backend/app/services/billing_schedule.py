"""
Geração das datas de cobrança/vencimento de lotes recorrentes
"""
import calendar
import math
from datetime import date
from typing import List
from dateutil.relativedelta import relativedelta
from app.models.financial import BaseCobranca, MESES_POR_BASE


def gerar_datas_cobranca(data_inicio: date, data_fim: date, base: BaseCobranca) -> List[date]:
    """
    Datas de cobrança de um lote a receber: a partir de data_inicio, avançando
    o intervalo da base, enquanto a data não ultrapassar data_fim.

    O passo é sempre calculado a partir de data_inicio, então um início em
    dia 31 não "escorrega" para dia 28 depois de fevereiro.
    """
    if data_fim < data_inicio:
        return []

    passo = MESES_POR_BASE[BaseCobranca(base)]
    datas = []
    k = 0
    atual = data_inicio
    while atual <= data_fim:
        datas.append(atual)
        k += 1
        atual = data_inicio + relativedelta(months=k * passo)
    return datas


def meses_no_periodo(data_inicio: date, data_fim: date) -> int:
    """Quantidade de meses-calendário tocados pelo período (inclusive)"""
    return (data_fim.year - data_inicio.year) * 12 + (data_fim.month - data_inicio.month) + 1


def calcular_total_despesas(data_inicio: date, data_fim: date, base: BaseCobranca) -> int:
    if data_fim < data_inicio:
        return 0
    return math.ceil(meses_no_periodo(data_inicio, data_fim) / MESES_POR_BASE[BaseCobranca(base)])


def gerar_vencimentos_despesa(data_inicio: date, data_fim: date, base: BaseCobranca, dia_pagamento: int) -> List[date]:
    """
    Vencimentos de uma despesa recorrente: um por período da base, no
    dia_pagamento do mês (limitado ao último dia do mês)
    """
    passo = MESES_POR_BASE[BaseCobranca(base)]
    total = calcular_total_despesas(data_inicio, data_fim, base)
    primeiro_mes = data_inicio.replace(day=1)

    vencimentos = []
    for k in range(total):
        mes = primeiro_mes + relativedelta(months=k * passo)
        ultimo_dia = calendar.monthrange(mes.year, mes.month)[1]
        vencimentos.append(mes.replace(day=min(dia_pagamento, ultimo_dia)))
    return vencimentos
