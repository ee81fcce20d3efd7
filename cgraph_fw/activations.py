# cgraph_fw/activations.py
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Tuple

import torch

ActivationFunction = Callable[[torch.Tensor], torch.Tensor]

LEAKY_RELU_SLOPE = 0.01


class ActivationType(Enum):
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    LEAKY_RELU = "leaky_relu"
    IDENTITY = "identity"
    SOFTMAX = "softmax"


# ============================================================
# Activations and their derivatives (element-wise, w.r.t. z)
# ============================================================

def sigmoid(z: torch.Tensor) -> torch.Tensor:
    return torch.sigmoid(z)


def sigmoid_prime(z: torch.Tensor) -> torch.Tensor:
    s = torch.sigmoid(z)
    return s * (1.0 - s)


def tanh(z: torch.Tensor) -> torch.Tensor:
    return torch.tanh(z)


def tanh_prime(z: torch.Tensor) -> torch.Tensor:
    th = torch.tanh(z)
    return 1.0 - th * th


def relu(z: torch.Tensor) -> torch.Tensor:
    return torch.relu(z)


def relu_prime(z: torch.Tensor) -> torch.Tensor:
    return (z > 0).to(z.dtype)


def leaky_relu(z: torch.Tensor) -> torch.Tensor:
    return torch.where(z > 0, z, z * LEAKY_RELU_SLOPE)


def leaky_relu_prime(z: torch.Tensor) -> torch.Tensor:
    return torch.where(z > 0, torch.ones_like(z), torch.full_like(z, LEAKY_RELU_SLOPE))


def identity(z: torch.Tensor) -> torch.Tensor:
    return z.clone()


def identity_prime(z: torch.Tensor) -> torch.Tensor:
    return torch.ones_like(z)


def softmax(z: torch.Tensor) -> torch.Tensor:
    # row-wise: one distribution per sample
    return torch.softmax(z, dim=1)


def softmax_prime(z: torch.Tensor) -> torch.Tensor:
    # softmax is only valid on output layers; the cost function supplies the delta
    raise RuntimeError("softmax has no element-wise derivative; use a log-likelihood output layer")


_ACTIVATIONS: Dict[ActivationType, Tuple[ActivationFunction, ActivationFunction]] = {
    ActivationType.SIGMOID: (sigmoid, sigmoid_prime),
    ActivationType.TANH: (tanh, tanh_prime),
    ActivationType.RELU: (relu, relu_prime),
    ActivationType.LEAKY_RELU: (leaky_relu, leaky_relu_prime),
    ActivationType.IDENTITY: (identity, identity_prime),
    ActivationType.SOFTMAX: (softmax, softmax_prime),
}


def get_activation(kind: ActivationType) -> Tuple[ActivationFunction, ActivationFunction]:
    """Returns the (activation, activation_prime) pair for an activation type."""
    try:
        return _ACTIVATIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown activation: {kind}") from None
