# cgraph_fw/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field

import torch

_STR_DTYPE = {
    "f16": torch.float16,
    "f32": torch.float32,
    "f64": torch.float64,
}


def _env_flag(name: str, default: str = "0") -> bool:
    v = os.environ.get(name, default).strip().lower()
    return v in ("1", "true", "yes", "on")


def env_dtype() -> torch.dtype:
    s = os.environ.get("CGRAPH_DTYPE", "f32").lower()
    if s not in _STR_DTYPE:
        raise ValueError(f"Unknown CGRAPH_DTYPE: {s} (use f16|f32|f64)")
    return _STR_DTYPE[s]


def env_backend_kind() -> str:
    return os.environ.get("CGRAPH_BACKEND", "torch").lower()


@dataclass
class BackendConfig:
    device: str = "cpu"
    dtype: torch.dtype = field(default=torch.float32)
    enable_profiler: bool = False

    @staticmethod
    def from_env() -> "BackendConfig":
        return BackendConfig(
            device=os.environ.get("CGRAPH_DEVICE", "cpu"),
            dtype=env_dtype(),
            enable_profiler=_env_flag("CGRAPH_PROFILE"),
        )
