# cgraph_fw/graph/validate.py
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..errors import (
    CyclicGraphError,
    DisconnectedParentError,
    DuplicateInferenceOutputError,
    DuplicateTrainingOutputError,
    EmptyChildSetError,
    InvalidChildTypeError,
    InvalidNodeTypeError,
    InvalidRootError,
    MissingInferenceOutputError,
    NestedTrainingSplitError,
    NonEmptyOutputChildSetError,
)
from .nodes import GraphNode, InputNode, MergeNode, ProcessingNode, TrainingSplitNode

logger = logging.getLogger("cgraph_fw.graph.validate")


# ------------------------------------------------------------
# Branch tags: the inference path, or one training-only path per split
# ------------------------------------------------------------

@dataclass(frozen=True)
class InferenceBranch:
    def __repr__(self) -> str:
        return "Inference"


@dataclass(frozen=True)
class TrainingBranch:
    id: int

    def __repr__(self) -> str:
        return f"Training({self.id})"


BranchTag = Union[InferenceBranch, TrainingBranch]

INFERENCE = InferenceBranch()


@dataclass(frozen=True)
class GraphInfo:
    nodes: Tuple[GraphNode, ...]
    output_node: ProcessingNode
    training_output_nodes: Tuple[ProcessingNode, ...]


class _Exploration:
    """
    Single depth-first traversal from an InputNode.

    State (visited order, current path, outputs) belongs to this object only;
    a new instance is created per validate_graph() call.
    """

    def __init__(self, root: InputNode) -> None:
        self.root = root
        self.visited: Dict[GraphNode, None] = {}     # insertion-ordered, identity-hashed
        self.on_path: Dict[GraphNode, None] = {}
        self.output: Optional[ProcessingNode] = None
        self.training_outputs: Dict[TrainingBranch, ProcessingNode] = {}
        self._branch_ids = itertools.count(1)

    def run(self) -> GraphInfo:
        for child in self.root.children:
            if not isinstance(child, ProcessingNode):
                raise InvalidChildTypeError(
                    f"the nodes right after the graph root must be processing nodes, got {type(child).__name__}",
                    node=child,
                )

        # explicit stack of (node, pending children) frames keeps pre-order
        # discovery without recursion depth limits
        stack: List[Tuple[GraphNode, Iterator[Tuple[GraphNode, BranchTag]]]] = []
        self._enter(self.root, INFERENCE, stack)
        while stack:
            node, pending = stack[-1]
            nxt = next(pending, None)
            if nxt is None:
                stack.pop()
                del self.on_path[node]
                continue
            child, tag = nxt
            if child in self.on_path:
                raise CyclicGraphError(f"{child!r} is reachable from itself", node=child)
            if child in self.visited:
                continue
            self._enter(child, tag, stack)

        for node in self.visited:
            if isinstance(node, MergeNode):
                for p in node.parents:
                    if p not in self.visited:
                        raise DisconnectedParentError(
                            f"merge parent {p!r} is not reachable from the graph root", node=node
                        )

        if self.output is None:
            raise MissingInferenceOutputError("the graph has no inference output node", node=self.root)

        return GraphInfo(
            nodes=tuple(self.visited),
            output_node=self.output,
            training_output_nodes=tuple(self.training_outputs.values()),
        )

    def _enter(self, node: GraphNode, tag: BranchTag, stack: list) -> None:
        self.visited[node] = None
        self.on_path[node] = None
        stack.append((node, iter(self._explore(node, tag))))

    def _explore(self, node: GraphNode, tag: BranchTag) -> List[Tuple[GraphNode, BranchTag]]:
        """Validates one node and returns the (child, tag) pairs to visit next."""
        if isinstance(node, InputNode):
            if node is not self.root:
                raise InvalidChildTypeError("an input node can't be the child of another node", node=node)
            return [(c, tag) for c in node.children]

        if isinstance(node, ProcessingNode):
            if node.is_output:
                if node.children:
                    raise NonEmptyOutputChildSetError("an output node can't have any child nodes", node=node)
                self._record_output(node, tag)
                return []
            if not node.children:
                raise EmptyChildSetError("a processing node can't have 0 child nodes", node=node)
            return [(c, tag) for c in node.children]

        if isinstance(node, MergeNode):
            return [(c, tag) for c in node.children]

        if isinstance(node, TrainingSplitNode):
            if isinstance(tag, TrainingBranch):
                raise NestedTrainingSplitError("a training branch can't contain training split nodes", node=node)
            if node.inference_branch_node is None or node.training_branch_node is None:
                raise EmptyChildSetError(
                    "a training split node needs both an inference and a training branch", node=node
                )
            if isinstance(node.inference_branch_node, TrainingSplitNode):
                raise NestedTrainingSplitError(
                    "the inference branch of a training split node can't start with another training split node",
                    node=node,
                )
            return [
                (node.inference_branch_node, tag),
                (node.training_branch_node, TrainingBranch(next(self._branch_ids))),
            ]

        raise InvalidNodeTypeError(f"invalid node type {type(node).__name__}", node=node)

    def _record_output(self, node: ProcessingNode, tag: BranchTag) -> None:
        if isinstance(tag, TrainingBranch):
            if tag in self.training_outputs:
                raise DuplicateTrainingOutputError(
                    f"training branch {tag!r} can only have a single output node "
                    f"(already has {self.training_outputs[tag]!r})",
                    node=node,
                )
            self.training_outputs[tag] = node
        elif self.output is None:
            self.output = node
        else:
            raise DuplicateInferenceOutputError(
                f"the graph can only have a single inference output node (already has {self.output!r})",
                node=node,
            )


def validate_graph(root: object) -> GraphInfo:
    """
    Validate a candidate graph and flatten it.

    Returns:
      GraphInfo(nodes, output_node, training_output_nodes)
      - nodes: pre-order discovery order, root first, each node once.
        This is NOT a strict topological order under merge fan-in.

    Raises:
      GraphStructureError subclasses on the first violated invariant.
    """
    if not isinstance(root, InputNode):
        raise InvalidRootError(f"the root node must be an InputNode, got {type(root).__name__}")

    info = _Exploration(root).run()
    logger.debug(
        "validated graph: nodes=%d training_outputs=%d output=%r",
        len(info.nodes), len(info.training_output_nodes), info.output_node,
    )
    return info
