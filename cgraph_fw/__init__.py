"""
cgraph_fw

Execution core of a branching neural-network engine:
- tensor:   TensorView over 2D torch buffers
- backend:  numeric primitives (TorchBackend), get_backend/set_backend
- layers:   layer contract + dense/output layers
- graph:    node variants, validator, ComputationGraph
"""

import logging

from .tensor import TensorView
from .activations import ActivationType, get_activation
from .cost import CostFunctionType, get_cost
from .config import BackendConfig
from .backend import Backend, TorchBackend, get_backend, set_backend
from .layers import LayerBase, WeightedLayerBase, OutputLayerBase, FullyConnectedLayer, OutputLayer
from .graph import (
    ComputationGraph,
    GraphNode,
    InputNode,
    MergeNode,
    MergeOperation,
    NodeType,
    ProcessingNode,
    TrainingSplitNode,
    validate_graph,
)
from . import errors

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "TensorView",
    "ActivationType",
    "get_activation",
    "CostFunctionType",
    "get_cost",
    "BackendConfig",
    "Backend",
    "TorchBackend",
    "get_backend",
    "set_backend",
    "LayerBase",
    "WeightedLayerBase",
    "OutputLayerBase",
    "FullyConnectedLayer",
    "OutputLayer",
    "ComputationGraph",
    "GraphNode",
    "InputNode",
    "MergeNode",
    "MergeOperation",
    "NodeType",
    "ProcessingNode",
    "TrainingSplitNode",
    "validate_graph",
    "errors",
]

__version__ = "0.1.0"
