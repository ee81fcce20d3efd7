# cgraph_fw/errors.py
from __future__ import annotations

from typing import Any, Optional, Tuple


class GraphStructureError(RuntimeError):
    """Raised when a candidate computation graph violates a structural invariant."""

    tag = "structure"

    def __init__(self, message: str, node: Optional[Any] = None):
        self.node = node
        where = f" (node={node!r})" if node is not None else ""
        super().__init__(f"[graph][{self.tag}] {message}{where}")


class InvalidRootError(GraphStructureError):
    tag = "root"


class InvalidChildTypeError(GraphStructureError):
    tag = "child_type"


class EmptyChildSetError(GraphStructureError):
    tag = "empty_children"


class NonEmptyOutputChildSetError(GraphStructureError):
    tag = "output_children"


class DuplicateInferenceOutputError(GraphStructureError):
    tag = "inference_output"


class MissingInferenceOutputError(GraphStructureError):
    tag = "inference_output"


class DuplicateTrainingOutputError(GraphStructureError):
    tag = "training_output"


class NestedTrainingSplitError(GraphStructureError):
    tag = "training_split"


class InvalidNodeTypeError(GraphStructureError):
    tag = "node_type"


class CyclicGraphError(GraphStructureError):
    tag = "cycle"


class DisconnectedParentError(GraphStructureError):
    tag = "parent"


class ShapeMismatchError(ValueError):
    """Raised when a tensor does not match a layer's fixed input/output size."""

    def __init__(self, what: str, expected: Tuple[int, ...], actual: Tuple[int, ...]):
        self.what = what
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(f"[layer][shape] {what}: expected={self.expected} actual={self.actual}")
