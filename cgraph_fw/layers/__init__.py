from .base import LayerBase, WeightedLayerBase, OutputLayerBase
from .fully_connected import FullyConnectedLayer
from .output import OutputLayer

__all__ = ["LayerBase", "WeightedLayerBase", "OutputLayerBase", "FullyConnectedLayer", "OutputLayer"]
