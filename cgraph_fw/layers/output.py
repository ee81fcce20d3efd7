# cgraph_fw/layers/output.py
from __future__ import annotations

from typing import Optional

import torch

from ..activations import ActivationType
from ..backend import get_backend
from ..cost import CostFunctionType, get_cost
from ..errors import ShapeMismatchError
from ..tensor import TensorView
from .base import OutputLayerBase
from .fully_connected import FullyConnectedLayer, default_parameters


class OutputLayer(FullyConnectedLayer, OutputLayerBase):
    """
    Dense layer that terminates a branch.

    Output delta:
      QUADRATIC                     (yhat - y) * f'(z)
      CROSS_ENTROPY (sigmoid)       yhat - y
      LOG_LIKELIHOOD (softmax)      yhat - y
    """

    def __init__(
        self,
        weights: torch.Tensor,
        biases: torch.Tensor,
        activation_type: ActivationType,
        cost_function_type: CostFunctionType = CostFunctionType.QUADRATIC,
    ) -> None:
        if cost_function_type == CostFunctionType.LOG_LIKELIHOOD and activation_type != ActivationType.SOFTMAX:
            raise ValueError("log-likelihood cost requires a softmax activation")
        if cost_function_type == CostFunctionType.CROSS_ENTROPY and activation_type != ActivationType.SIGMOID:
            raise ValueError("cross-entropy cost requires a sigmoid activation")
        if activation_type == ActivationType.SOFTMAX and cost_function_type != CostFunctionType.LOG_LIKELIHOOD:
            raise ValueError("softmax output layers must use the log-likelihood cost")
        super().__init__(weights, biases, activation_type)
        self.cost_function_type = cost_function_type
        self._cost = get_cost(cost_function_type)

    @classmethod
    def create(
        cls,
        inputs: int,
        outputs: int,
        activation: ActivationType,
        cost: CostFunctionType = CostFunctionType.QUADRATIC,
        *,
        device: Optional[str] = None,
        dtype: Optional[torch.dtype] = None,
        generator: Optional[torch.Generator] = None,
    ) -> "OutputLayer":
        w, b = default_parameters(inputs, outputs, device=device, dtype=dtype, generator=generator)
        return cls(w, b, activation, cost)

    def cost(self, yhat: TensorView, y: TensorView) -> float:
        self._check_targets(yhat, y)
        return self._cost(yhat.t, y.t)

    def backpropagate_output(self, yhat: TensorView, y: TensorView, z: TensorView) -> TensorView:
        self._check_targets(yhat, y)
        if z.shape != yhat.shape:
            raise ShapeMismatchError("output z", yhat.shape, z.shape)
        bk = get_backend()
        diff = bk.subtract(yhat, y)
        if self.cost_function_type != CostFunctionType.QUADRATIC:
            return diff
        with diff, TensorView(self.activation_prime(z.t), owned=True) as fp:
            return bk.hadamard(diff, fp)

    def clone(self) -> "OutputLayer":
        return OutputLayer(
            self.weights.clone(), self.biases.clone(), self.activation_type, self.cost_function_type
        )

    def equals(self, other: object) -> bool:
        return super().equals(other) and self.cost_function_type == other.cost_function_type

    def _check_targets(self, yhat: TensorView, y: TensorView) -> None:
        self._check_columns("output yhat", yhat, self.outputs)
        if y.shape != yhat.shape:
            raise ShapeMismatchError("output targets", yhat.shape, y.shape)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.inputs}->{self.outputs}, "
            f"{self.activation_type.value}, {self.cost_function_type.value})"
        )
