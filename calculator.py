"""Margin calculator for pricing a stone from its cost."""

import math

from schema import CalculatorResult

DEFAULT_COMMISSION_PERCENT = 3


class CalculationError(ValueError):
    """Raised when the calculator inputs cannot produce a result."""


def _round(value: float) -> int:
    """Round half up to a whole currency unit."""

    return math.floor(value + 0.5)


def _number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CalculationError(f'{name} must be a number')
    return value


def calculate_margin(cost_price, carat, target_margin,
                     commission_percent=None) -> CalculatorResult:
    """
    Work out the selling price and profit for a target margin.

    Args:
        cost_price (float): what the stone cost (must not be 0)
        carat (float): the stone weight (must be positive)
        target_margin (float): markup over cost, in percent
        commission_percent (float|None): broker commission on the sell price

    Returns:
        CalculatorResult with whole-unit currency amounts.

    Raises:
        CalculationError if an input is missing, not numeric, or would
        cause a division by zero.
    """

    if commission_percent is None:
        commission_percent = DEFAULT_COMMISSION_PERCENT

    cost_price = _number('cost_price', cost_price)
    carat = _number('carat', carat)
    target_margin = _number('target_margin', target_margin)
    commission_percent = _number('commission_percent', commission_percent)

    if cost_price == 0:
        raise CalculationError('cost_price must not be zero')
    if carat <= 0:
        raise CalculationError('carat must be greater than zero')

    sell_price = cost_price * (1 + target_margin / 100)
    profit = sell_price - cost_price
    commission = sell_price * (commission_percent / 100)
    net_profit = profit - commission

    return CalculatorResult(cost_price=cost_price,
                            cost_per_carat=_round(cost_price / carat),
                            sell_price=_round(sell_price),
                            sell_per_carat=_round(sell_price / carat),
                            profit=_round(profit),
                            commission=_round(commission),
                            net_profit=_round(net_profit),
                            margin_percent=target_margin,
                            net_margin_percent=f'{net_profit / cost_price * 100:.1f}')
