from .nodes import GraphNode, NodeType, MergeOperation, InputNode, ProcessingNode, MergeNode, TrainingSplitNode
from .validate import GraphInfo, InferenceBranch, TrainingBranch, INFERENCE, validate_graph
from .computation_graph import ComputationGraph

__all__ = [
    "GraphNode",
    "NodeType",
    "MergeOperation",
    "InputNode",
    "ProcessingNode",
    "MergeNode",
    "TrainingSplitNode",
    "GraphInfo",
    "InferenceBranch",
    "TrainingBranch",
    "INFERENCE",
    "validate_graph",
    "ComputationGraph",
]
