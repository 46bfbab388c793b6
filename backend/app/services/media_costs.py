"""
Custo de inserções do plano de mídia
"""
from decimal import Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]


def insertion_cost(quantity: Number, cost_per_insertion: Optional[Number], actual_cost: Optional[Number] = None) -> Decimal:
    """Custo realizado quando informado; senão quantidade x custo por inserção"""
    if actual_cost is not None:
        return Decimal(str(actual_cost))
    if cost_per_insertion is None or not quantity:
        return Decimal("0")
    return Decimal(str(quantity)) * Decimal(str(cost_per_insertion))


def budget_usage(budgeted: Decimal, actual: Decimal) -> dict:
    """Restante, percentual usado e estouro de um orçamento"""
    percentage = float(actual / budgeted * 100) if budgeted > 0 else 0.0
    return {
        "remaining": budgeted - actual,
        "percentage_used": round(percentage, 1),
        "over_budget": actual > budgeted,
    }
