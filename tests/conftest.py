from __future__ import annotations

import random

import numpy as np
import pytest
import torch

from cgraph_fw import set_backend


def seed_all(seed: int) -> None:
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture(autouse=True)
def _fresh_backend(monkeypatch):
    for name in ("CGRAPH_BACKEND", "CGRAPH_DEVICE", "CGRAPH_DTYPE", "CGRAPH_PROFILE"):
        monkeypatch.delenv(name, raising=False)
    set_backend(None)
    seed_all(0)
    yield
    set_backend(None)
