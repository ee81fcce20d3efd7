# cgraph_fw/tensor.py
from __future__ import annotations

from typing import Tuple

import torch


class TensorView:
    """
    Non-owning 2D view over a numeric buffer (rows = samples, columns = features).

    - Wraps a torch.Tensor without copying it.
    - Views produced by transpose() own a freshly materialised buffer and must
      be released with free() (or used as a context manager).
    - free() on a non-owning view is a no-op: the view stays usable and the
      caller's buffer is untouched.
    """
    __slots__ = ("_t", "_owned")

    def __init__(self, t: torch.Tensor, *, owned: bool = False):
        if not isinstance(t, torch.Tensor):
            raise TypeError(f"TensorView expects torch.Tensor, got {type(t)}")
        if t.dim() != 2:
            raise ValueError(f"TensorView requires a 2D buffer, got shape={tuple(t.shape)}")
        self._t = t
        self._owned = owned

    @property
    def t(self) -> torch.Tensor:
        if self._t is None:
            raise RuntimeError("TensorView: buffer already released")
        return self._t

    @property
    def rows(self) -> int:
        return int(self.t.shape[0])

    @property
    def columns(self) -> int:
        return int(self.t.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.columns

    @property
    def owned(self) -> bool:
        return self._owned

    @property
    def released(self) -> bool:
        return self._t is None

    def transpose(self) -> "TensorView":
        # materialised copy: the result is a temporary the caller must free()
        return TensorView(self.t.t().contiguous().clone(), owned=True)

    def column_sum(self) -> torch.Tensor:
        return self.t.sum(dim=0)

    def free(self) -> None:
        if not self._owned:
            return
        self._t = None
        self._owned = False

    def __enter__(self) -> "TensorView":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.free()

    def __repr__(self) -> str:
        if self._t is None:
            return "TensorView(released)"
        return (
            f"TensorView(shape={self.shape}, dtype={self._t.dtype}, "
            f"device={self._t.device}, owned={self._owned})"
        )
