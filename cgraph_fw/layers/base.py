# cgraph_fw/layers/base.py
from __future__ import annotations

from typing import Tuple

import torch

from ..activations import ActivationFunction, ActivationType, get_activation
from ..cost import CostFunctionType
from ..errors import ShapeMismatchError
from ..tensor import TensorView


class LayerBase:
    """
    Uniform contract for every processable layer.

      forward(x)                          -> (z, a)
      backpropagate(delta_next, z, f')    -> delta
      compute_gradient(a, delta)          -> (dJdw, dJdb)
      clone()                             -> independent copy

    inputs/outputs are fixed at construction. Every TensorView returned by the
    contract is owned by the caller, who must free() it.
    """

    def __init__(self, activation_type: ActivationType) -> None:
        self.activation_type = activation_type
        self.activation, self.activation_prime = get_activation(activation_type)

    @property
    def inputs(self) -> int:
        raise NotImplementedError

    @property
    def outputs(self) -> int:
        raise NotImplementedError

    def forward(self, x: TensorView) -> Tuple[TensorView, TensorView]:
        raise NotImplementedError

    def backpropagate(
        self, delta_next: TensorView, z: TensorView, activation_prime: ActivationFunction
    ) -> TensorView:
        raise NotImplementedError

    def compute_gradient(self, a: TensorView, delta: TensorView) -> Tuple[TensorView, torch.Tensor]:
        raise NotImplementedError

    def clone(self) -> "LayerBase":
        raise NotImplementedError

    # -------------------------
    # Shape guards
    # -------------------------
    @staticmethod
    def _check_columns(what: str, v: TensorView, expected: int) -> None:
        if v.columns != expected:
            raise ShapeMismatchError(f"{what} columns", (expected,), (v.columns,))

    @staticmethod
    def _check_rows(what: str, a: TensorView, b: TensorView) -> None:
        if a.rows != b.rows:
            raise ShapeMismatchError(f"{what} rows", (a.rows,), (b.rows,))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inputs}->{self.outputs}, {self.activation_type.value})"


class WeightedLayerBase(LayerBase):
    """
    Layer owning a weight matrix (inputs, outputs) and a bias vector (outputs,).
    """

    def __init__(self, weights: torch.Tensor, biases: torch.Tensor, activation_type: ActivationType) -> None:
        if weights.dim() != 2:
            raise ValueError(f"weights must be 2D, got shape={tuple(weights.shape)}")
        if tuple(biases.shape) != (weights.shape[1],):
            raise ValueError(
                f"biases shape mismatch: b={tuple(biases.shape)} expected={(weights.shape[1],)}"
            )
        super().__init__(activation_type)
        self.weights = weights
        self.biases = biases

    @property
    def inputs(self) -> int:
        return int(self.weights.shape[0])

    @property
    def outputs(self) -> int:
        return int(self.weights.shape[1])

    def parameters(self) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.weights, self.biases

    def set_parameters(self, weights: torch.Tensor, biases: torch.Tensor) -> None:
        if tuple(weights.shape) != tuple(self.weights.shape):
            raise ShapeMismatchError("weights", tuple(self.weights.shape), tuple(weights.shape))
        if tuple(biases.shape) != tuple(self.biases.shape):
            raise ShapeMismatchError("biases", tuple(self.biases.shape), tuple(biases.shape))
        self.weights = weights
        self.biases = biases

    def equals(self, other: object) -> bool:
        if type(other) is not type(self):
            return False
        return (
            self.activation_type == other.activation_type
            and tuple(self.weights.shape) == tuple(other.weights.shape)
            and torch.equal(self.weights, other.weights)
            and torch.equal(self.biases, other.biases)
        )


class OutputLayerBase:
    """
    Marks a layer that terminates a branch: a processing node wrapping it must
    have no children. Implementations provide the cost and the output delta.
    """
    cost_function_type: CostFunctionType

    def cost(self, yhat: TensorView, y: TensorView) -> float:
        raise NotImplementedError

    def backpropagate_output(self, yhat: TensorView, y: TensorView, z: TensorView) -> TensorView:
        raise NotImplementedError
