from __future__ import annotations

import torch

from cgraph_fw import ActivationType, CostFunctionType, FullyConnectedLayer, OutputLayer


def dense(inputs: int = 4, outputs: int = 4, activation: ActivationType = ActivationType.SIGMOID,
          dtype: torch.dtype = torch.float64) -> FullyConnectedLayer:
    return FullyConnectedLayer.create(inputs, outputs, activation, dtype=dtype)


def output(inputs: int = 4, outputs: int = 2, activation: ActivationType = ActivationType.SIGMOID,
           cost: CostFunctionType = CostFunctionType.QUADRATIC,
           dtype: torch.dtype = torch.float64) -> OutputLayer:
    return OutputLayer.create(inputs, outputs, activation, cost, dtype=dtype)
