# cgraph_fw/backend/__init__.py
from __future__ import annotations

import logging
from typing import Optional

from ..config import BackendConfig, env_backend_kind
from .base import Backend
from .torch_backend import TorchBackend

logger = logging.getLogger("cgraph_fw.backend")

_BACKEND: Optional[Backend] = None


def set_backend(b: Optional[Backend]) -> None:
    """Install a backend explicitly; None drops back to env-based selection."""
    global _BACKEND
    _BACKEND = b


def get_backend() -> Backend:
    """
    Backend selector.
    Default is TorchBackend; CGRAPH_BACKEND chooses the kind on first use.
    """
    global _BACKEND
    if _BACKEND is None:
        kind = env_backend_kind()
        if kind == "torch":
            _BACKEND = TorchBackend(BackendConfig.from_env())
        else:
            raise ValueError(f"Unknown backend kind: {kind} (use CGRAPH_BACKEND=torch)")
        logger.debug("selected backend kind=%s cfg=%s", kind, _BACKEND.cfg)
    return _BACKEND


__all__ = ["Backend", "TorchBackend", "BackendConfig", "get_backend", "set_backend"]
