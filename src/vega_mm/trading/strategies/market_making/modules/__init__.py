"""
Market Making Strategy Modules

This package contains the modular components for the market making strategy.

Modules:
- parameter_estimator: lambda and kappa estimation from recent trades
- offset_calculator: closed-form optimal quote offsets
- risk_controller: per-side situation and inventory disposal
- order_manager: sizing, price conversion and batch construction
- reference_combiner: combination of venue reference prices
"""

from .parameter_estimator import estimate_lambda, estimate_lambda2, estimate_kappa, classify_trade
from .offset_calculator import calculate_offsets, offsets_from_position, Offsets
from .risk_controller import RiskController, PositionSituation, Side, DisposalDecision
from .order_manager import OrderManager, OrderBatch, OrderSubmission, QuoteContext
from .reference_combiner import combine_reference_prices

__all__ = [
    'estimate_lambda',
    'estimate_lambda2',
    'estimate_kappa',
    'classify_trade',
    'calculate_offsets',
    'offsets_from_position',
    'Offsets',
    'RiskController',
    'PositionSituation',
    'Side',
    'DisposalDecision',
    'OrderManager',
    'OrderBatch',
    'OrderSubmission',
    'QuoteContext',
    'combine_reference_prices',
]
