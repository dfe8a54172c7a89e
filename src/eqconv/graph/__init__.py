from ._adjacency import AdjacencyView
from ._featured_graph import FeaturedGraph
from ._neighborlist import radius_graph
from ._scatter import Aggregation, gather, scatter

__all__ = ["AdjacencyView", "Aggregation", "FeaturedGraph", "gather", "radius_graph", "scatter"]
