import dataclasses
from dataclasses import dataclass

import torch

from ._adjacency import AdjacencyView


@dataclass(frozen=True)
class FeaturedGraph:
    """
    Graph topology together with node, edge and positional features.

    Features are either unbatched ([n_nodes, n_features], [n_edges, n_features])
    or carry a leading batch axis shared by all three tensors; every graph of a
    batch has the same topology.

    Parameters
    ----------
    edge_index : torch.Tensor
        Edge list [2, n_edges]
    num_nodes : int
        Number of nodes
    node_feature : torch.Tensor
        Node features [(n_batch,) n_nodes, in_dim]
    edge_feature : torch.Tensor
        Edge features [(n_batch,) n_edges, edge_dim]
    positional_feature : torch.Tensor
        Node coordinates [(n_batch,) n_nodes, pos_dim]
    directed : bool, optional
        Whether ``edge_index`` lists directed edges
    """

    edge_index: torch.Tensor
    num_nodes: int
    node_feature: torch.Tensor
    edge_feature: torch.Tensor
    positional_feature: torch.Tensor
    directed: bool = True

    @property
    def num_edges(self) -> int:
        return self.edge_index.shape[1]

    @property
    def batch_size(self) -> int | None:
        if self.node_feature.dim() == 3:
            return self.node_feature.shape[0]
        return None

    def check_num_nodes(self, feature: torch.Tensor) -> None:
        n = feature.shape[-2]
        if n != self.num_nodes:
            raise ValueError(f"Number of nodes in features ({n}) does not match the graph ({self.num_nodes})")

    def check_num_edges(self, feature: torch.Tensor) -> None:
        n = feature.shape[-2]
        if n != self.num_edges:
            raise ValueError(f"Number of edges in features ({n}) does not match the graph ({self.num_edges})")

    def adjacency(self) -> AdjacencyView:
        return AdjacencyView.from_edge_index(self.edge_index, self.num_nodes, directed=self.directed)

    def replace(self, **changes) -> "FeaturedGraph":
        """Copy of this graph with the given features replaced; topology is kept."""
        return dataclasses.replace(self, **changes)
