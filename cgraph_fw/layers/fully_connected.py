# cgraph_fw/layers/fully_connected.py
from __future__ import annotations

from typing import Optional, Tuple

import torch

from ..activations import ActivationFunction, ActivationType
from ..backend import get_backend
from ..config import BackendConfig
from ..tensor import TensorView
from .base import OutputLayerBase, WeightedLayerBase


def default_parameters(
    inputs: int,
    outputs: int,
    *,
    device: Optional[str] = None,
    dtype: Optional[torch.dtype] = None,
    generator: Optional[torch.Generator] = None,
) -> Tuple[torch.Tensor, torch.Tensor]:
    if inputs <= 0 or outputs <= 0:
        raise ValueError(f"layer size must be positive, got inputs={inputs} outputs={outputs}")
    cfg = BackendConfig.from_env()
    dev = device or cfg.device
    dt = dtype or cfg.dtype
    w = torch.randn((inputs, outputs), generator=generator, dtype=dt).to(dev) * 0.02
    b = torch.zeros((outputs,), device=dev, dtype=dt)
    return w.contiguous(), b


class FullyConnectedLayer(WeightedLayerBase):
    """
    Dense layer:
      z = x @ W + b      x: (B, IN)  W: (IN, OUT)  b: (OUT,)
      a = f(z)
    """

    def __init__(self, weights: torch.Tensor, biases: torch.Tensor, activation_type: ActivationType) -> None:
        if activation_type == ActivationType.SOFTMAX and not isinstance(self, OutputLayerBase):
            raise ValueError("softmax is only supported on output layers (log-likelihood cost)")
        super().__init__(weights, biases, activation_type)

    @classmethod
    def create(
        cls,
        inputs: int,
        outputs: int,
        activation: ActivationType,
        *,
        device: Optional[str] = None,
        dtype: Optional[torch.dtype] = None,
        generator: Optional[torch.Generator] = None,
    ) -> "FullyConnectedLayer":
        w, b = default_parameters(inputs, outputs, device=device, dtype=dtype, generator=generator)
        return cls(w, b, activation)

    def forward(self, x: TensorView) -> Tuple[TensorView, TensorView]:
        self._check_columns("forward input", x, self.inputs)
        bk = get_backend()
        z = bk.multiply_with_sum(x, self.weights, self.biases)
        try:
            a = bk.activation(z, self.activation)
        except BaseException:
            z.free()
            raise
        return z, a

    def backpropagate(
        self, delta_next: TensorView, z: TensorView, activation_prime: ActivationFunction
    ) -> TensorView:
        # delta = (delta_next @ W^T) * f'(z), z being the previous layer's pre-activation
        self._check_columns("backpropagate delta", delta_next, self.outputs)
        self._check_columns("backpropagate z", z, self.inputs)
        self._check_rows("backpropagate z", delta_next, z)
        bk = get_backend()
        with bk.transpose(TensorView(self.weights)) as wt:
            return bk.multiply_and_hadamard(delta_next, wt, z, activation_prime)

    def compute_gradient(self, a: TensorView, delta: TensorView) -> Tuple[TensorView, torch.Tensor]:
        self._check_columns("gradient input", a, self.inputs)
        self._check_columns("gradient delta", delta, self.outputs)
        self._check_rows("gradient delta", a, delta)
        bk = get_backend()
        dJdw = bk.transpose_and_multiply(a, delta)
        dJdb = bk.column_sum(delta)
        return dJdw, dJdb

    def clone(self) -> "FullyConnectedLayer":
        return FullyConnectedLayer(self.weights.clone(), self.biases.clone(), self.activation_type)
