"""E(n)-equivariant graph convolution and positional encoding."""

from ._eequiv_graph_conv import EEquivGraphConv
from ._eequiv_graph_pe import EEquivGraphPE

__all__ = ["EEquivGraphConv", "EEquivGraphPE"]
