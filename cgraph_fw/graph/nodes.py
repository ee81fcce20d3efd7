# cgraph_fw/graph/nodes.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence

from ..layers.base import LayerBase, OutputLayerBase


class NodeType(Enum):
    INPUT = "input"
    PROCESSING = "processing"
    MERGE = "merge"
    TRAINING_SPLIT = "training_split"


class MergeOperation(Enum):
    SUM = "sum"
    CONCATENATION = "concatenation"


class GraphNode:
    """
    Base for the closed set of graph node variants.

    NOTE:
      - equality and hashing are by identity: two separately built nodes with
        identical content stay distinct.
      - a node registers itself as a child of its parent(s) when constructed.
      - once a ComputationGraph is built over a node it is frozen and accepts
        no further children.
    """
    type: NodeType

    def __init__(self) -> None:
        self._children: List[GraphNode] = []
        self._frozen = False

    @property
    def children(self) -> Sequence["GraphNode"]:
        return tuple(self._children)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_child(self, child: "GraphNode") -> None:
        """Raises ValueError if `child` can't be registered; mutates nothing."""
        if self._frozen:
            raise ValueError(f"{self!r} belongs to a validated graph and can't take new children")
        if any(c is child for c in self._children):
            raise ValueError(f"{child!r} is already a child of {self!r}")

    def _attach(self, child: "GraphNode") -> None:
        self._children.append(child)

    def _add_child(self, child: "GraphNode") -> None:
        self._check_child(child)
        self._attach(child)

    def _freeze(self) -> None:
        self._frozen = True

    def __repr__(self) -> str:
        return f"{type(self).__name__}@{id(self):x}"


class InputNode(GraphNode):
    """Graph entry: no computation, feeds its processing children."""
    type = NodeType.INPUT

    def __init__(self, features: Optional[int] = None) -> None:
        super().__init__()
        self.features = features


class ProcessingNode(GraphNode):
    type = NodeType.PROCESSING

    def __init__(self, layer: LayerBase, parent: GraphNode) -> None:
        if not isinstance(layer, LayerBase):
            raise TypeError(f"ProcessingNode layer must be a LayerBase, got {type(layer)}")
        super().__init__()
        self.layer = layer
        self.parent = parent
        parent._add_child(self)

    @property
    def is_output(self) -> bool:
        return isinstance(self.layer, OutputLayerBase)

    def __repr__(self) -> str:
        return f"ProcessingNode@{id(self):x}({self.layer!r})"


class MergeNode(GraphNode):
    type = NodeType.MERGE

    def __init__(self, parents: Sequence[GraphNode], operation: MergeOperation = MergeOperation.SUM) -> None:
        if len(parents) < 2:
            raise ValueError(f"MergeNode requires at least 2 parents, got {len(parents)}")
        if len({id(p) for p in parents}) != len(parents):
            raise ValueError("MergeNode parents must be distinct")
        super().__init__()
        self.parents = tuple(parents)
        self.operation = operation
        # all-or-nothing: no parent is touched unless every parent accepts
        for p in self.parents:
            p._check_child(self)
        for p in self.parents:
            p._attach(self)


class TrainingSplitNode(GraphNode):
    """
    Forks into an inference branch and a training-only branch.

    Branch slots fill in creation order: the first node created with this
    split as its parent is the inference branch, the second the training branch.
    """
    type = NodeType.TRAINING_SPLIT

    def __init__(self, parent: GraphNode) -> None:
        super().__init__()
        self.parent = parent
        self.inference_branch_node: Optional[GraphNode] = None
        self.training_branch_node: Optional[GraphNode] = None
        parent._add_child(self)

    def _check_child(self, child: GraphNode) -> None:
        super()._check_child(child)
        if self.training_branch_node is not None:
            raise ValueError(f"{self!r} already has both an inference and a training branch")

    def _attach(self, child: GraphNode) -> None:
        if self.inference_branch_node is None:
            self.inference_branch_node = child
        else:
            self.training_branch_node = child
        super()._attach(child)
