# cgraph_fw/cost.py
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict

import torch

CostFunction = Callable[[torch.Tensor, torch.Tensor], float]

_EPS = 1e-12


class CostFunctionType(Enum):
    QUADRATIC = "quadratic"
    CROSS_ENTROPY = "cross_entropy"
    LOG_LIKELIHOOD = "log_likelihood"


def quadratic_cost(yhat: torch.Tensor, y: torch.Tensor) -> float:
    diff = yhat - y
    return float(0.5 * (diff * diff).sum().item() / yhat.shape[0])


def cross_entropy_cost(yhat: torch.Tensor, y: torch.Tensor) -> float:
    p = yhat.clamp(_EPS, 1.0 - _EPS)
    s = y * torch.log(p) + (1.0 - y) * torch.log(1.0 - p)
    return float(-s.sum().item() / yhat.shape[0])


def log_likelihood_cost(yhat: torch.Tensor, y: torch.Tensor) -> float:
    s = y * torch.log(yhat.clamp_min(_EPS))
    return float(-s.sum().item() / yhat.shape[0])


_COSTS: Dict[CostFunctionType, CostFunction] = {
    CostFunctionType.QUADRATIC: quadratic_cost,
    CostFunctionType.CROSS_ENTROPY: cross_entropy_cost,
    CostFunctionType.LOG_LIKELIHOOD: log_likelihood_cost,
}


def get_cost(kind: CostFunctionType) -> CostFunction:
    try:
        return _COSTS[kind]
    except KeyError:
        raise ValueError(f"Unknown cost function: {kind}") from None
