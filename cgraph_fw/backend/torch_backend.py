# cgraph_fw/backend/torch_backend.py
from __future__ import annotations

from typing import Optional

import torch

from ..activations import ActivationFunction
from ..config import BackendConfig
from ..tensor import TensorView
from ..utils.profiling import OpProfiler
from .base import Backend


class TorchBackend(Backend):
    """
    Reference backend
    - plain torch ops, no autograd tape
    - results are new owned TensorViews
    """
    def __init__(self, cfg: Optional[BackendConfig] = None) -> None:
        self.cfg = cfg or BackendConfig()
        self.profiler = OpProfiler(enabled=self.cfg.enable_profiler)

    @torch.no_grad()
    def multiply_with_sum(self, x: TensorView, w: torch.Tensor, b: torch.Tensor) -> TensorView:
        with self.profiler.scope("multiply_with_sum", self._sig(x)):
            return TensorView(torch.addmm(b, x.t, w), owned=True)

    @torch.no_grad()
    def activation(self, z: TensorView, f: ActivationFunction) -> TensorView:
        with self.profiler.scope("activation", self._sig(z)):
            return TensorView(f(z.t), owned=True)

    def transpose(self, x: TensorView) -> TensorView:
        with self.profiler.scope("transpose", self._sig(x)):
            return x.transpose()

    @torch.no_grad()
    def multiply_and_hadamard(
        self, delta: TensorView, wt: TensorView, z: TensorView, f_prime: ActivationFunction
    ) -> TensorView:
        with self.profiler.scope("multiply_and_hadamard", self._sig(delta, wt, z)):
            y = delta.t @ wt.t
            y.mul_(f_prime(z.t))
            return TensorView(y, owned=True)

    @torch.no_grad()
    def transpose_and_multiply(self, a: TensorView, delta: TensorView) -> TensorView:
        with self.profiler.scope("transpose_and_multiply", self._sig(a, delta)):
            return TensorView(a.t.t() @ delta.t, owned=True)

    @torch.no_grad()
    def column_sum(self, x: TensorView) -> torch.Tensor:
        with self.profiler.scope("column_sum", self._sig(x)):
            return x.column_sum()

    @torch.no_grad()
    def hadamard(self, a: TensorView, b: TensorView) -> TensorView:
        with self.profiler.scope("hadamard", self._sig(a, b)):
            return TensorView(a.t * b.t, owned=True)

    @torch.no_grad()
    def subtract(self, a: TensorView, b: TensorView) -> TensorView:
        with self.profiler.scope("subtract", self._sig(a, b)):
            return TensorView(a.t - b.t, owned=True)

    def _sig(self, *views: TensorView) -> str:
        return "|".join(f"{v.rows}x{v.columns}" for v in views)
