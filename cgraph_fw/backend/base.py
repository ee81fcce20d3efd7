# cgraph_fw/backend/base.py
from __future__ import annotations

import torch

from ..activations import ActivationFunction
from ..tensor import TensorView


class Backend:
    """
    Tensor-level primitives consumed by the layer contract.

    Every method returning a TensorView hands the caller a freshly allocated,
    owned buffer; releasing it is the caller's job.
    """

    def multiply_with_sum(self, x: TensorView, w: torch.Tensor, b: torch.Tensor) -> TensorView:
        """z = x @ w + b (b broadcast over rows)"""
        raise NotImplementedError

    def activation(self, z: TensorView, f: ActivationFunction) -> TensorView:
        raise NotImplementedError

    def transpose(self, x: TensorView) -> TensorView:
        raise NotImplementedError

    def multiply_and_hadamard(
        self, delta: TensorView, wt: TensorView, z: TensorView, f_prime: ActivationFunction
    ) -> TensorView:
        """(delta @ wt) * f_prime(z)"""
        raise NotImplementedError

    def transpose_and_multiply(self, a: TensorView, delta: TensorView) -> TensorView:
        """a^T @ delta"""
        raise NotImplementedError

    def column_sum(self, x: TensorView) -> torch.Tensor:
        raise NotImplementedError

    def hadamard(self, a: TensorView, b: TensorView) -> TensorView:
        raise NotImplementedError

    def subtract(self, a: TensorView, b: TensorView) -> TensorView:
        raise NotImplementedError
