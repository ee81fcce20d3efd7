# cgraph_fw/graph/computation_graph.py
from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterator, List, Tuple

from ..layers.base import LayerBase
from .nodes import GraphNode, InputNode, MergeNode, ProcessingNode, TrainingSplitNode
from .validate import validate_graph

logger = logging.getLogger("cgraph_fw.graph")


class ComputationGraph:
    """
    Validated, immutable graph of layer nodes with O(1) pre-order access.

    - root:                  the InputNode
    - nodes:                 pre-order discovery order (root first, each node once)
    - output_node:           the single inference output
    - training_output_nodes: one output per training branch

    Construction validates the whole graph once; any structural violation
    raises and no graph object is produced. On success every node is frozen:
    building a new node under one of them raises ValueError.
    """

    def __init__(self, root: GraphNode):
        info = validate_graph(root)
        self._root: InputNode = root  # type: ignore[assignment]
        self._nodes: Tuple[GraphNode, ...] = info.nodes
        self._output_node = info.output_node
        self._training_output_nodes = info.training_output_nodes
        self._index: Dict[GraphNode, int] = {n: i for i, n in enumerate(self._nodes)}
        for n in self._nodes:
            n._freeze()

    # -------------------------
    # Read-only view
    # -------------------------
    @property
    def root(self) -> InputNode:
        return self._root

    @property
    def nodes(self) -> Tuple[GraphNode, ...]:
        return self._nodes

    @property
    def output_node(self) -> ProcessingNode:
        return self._output_node

    @property
    def training_output_nodes(self) -> Tuple[ProcessingNode, ...]:
        return self._training_output_nodes

    @property
    def layers(self) -> Tuple[LayerBase, ...]:
        return tuple(n.layer for n in self._nodes if isinstance(n, ProcessingNode))

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, i: int) -> GraphNode:
        return self._nodes[i]

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes)

    def __contains__(self, node: object) -> bool:
        return node in self._index

    def index_of(self, node: GraphNode) -> int:
        try:
            return self._index[node]
        except KeyError:
            raise KeyError(f"{node!r} is not part of this graph") from None

    # -------------------------
    # Derived orders / copies
    # -------------------------
    def topological_order(self) -> List[GraphNode]:
        """
        Every node after all of its parents (Kahn's algorithm over child links).
        Use this instead of `nodes` when scheduling by data dependency.
        """
        indeg: Dict[GraphNode, int] = {n: 0 for n in self._nodes}
        for n in self._nodes:
            for c in n.children:
                indeg[c] += 1

        order: List[GraphNode] = []
        ready = deque([self._root])
        while ready:
            n = ready.popleft()
            order.append(n)
            for c in n.children:
                indeg[c] -= 1
                if indeg[c] == 0:
                    ready.append(c)
        return order

    def clone(self) -> "ComputationGraph":
        """Structural deep copy; every layer is clone()d, so no mutable state is shared."""
        copies: Dict[GraphNode, GraphNode] = {}
        for n in self.topological_order():
            copies[n] = _copy_node(n, copies)

        # creation order can differ from the original child order: restore it
        for n, c in copies.items():
            c._children = [copies[ch] for ch in n.children]
            if isinstance(n, TrainingSplitNode):
                c.inference_branch_node = copies[n.inference_branch_node]
                c.training_branch_node = copies[n.training_branch_node]

        graph = ComputationGraph(copies[self._root])
        logger.debug("cloned graph with %d nodes", len(graph))
        return graph

    def __repr__(self) -> str:
        return (
            f"ComputationGraph(nodes={len(self._nodes)}, layers={len(self.layers)}, "
            f"training_outputs={len(self._training_output_nodes)})"
        )


def _copy_node(n: GraphNode, copies: Dict[GraphNode, GraphNode]) -> GraphNode:
    if isinstance(n, InputNode):
        return InputNode(n.features)
    if isinstance(n, ProcessingNode):
        return ProcessingNode(n.layer.clone(), copies[n.parent])
    if isinstance(n, MergeNode):
        return MergeNode([copies[p] for p in n.parents], n.operation)
    if isinstance(n, TrainingSplitNode):
        return TrainingSplitNode(copies[n.parent])
    raise TypeError(f"cannot copy node type {type(n).__name__}")
