"""
E(n)-equivariant graph convolution.

Implements equations (3)-(6) of "E(n) Equivariant Graph Neural Networks"
(Satorras et al., ICML 2021) over a sparse adjacency with edge features.
"""

import logging
from collections import OrderedDict
from collections.abc import Callable

import torch
import torch.nn as nn

from eqconv.graph import AdjacencyView, Aggregation, FeaturedGraph, gather, scatter

from ._eequiv_graph_pe import EEquivGraphPE
from ._utils import dense

logger = logging.getLogger(__name__)


class EEquivGraphConv(nn.Module):
    """
    E(n)-equivariant graph convolutional layer.

    One forward pass computes a message for every adjacency entry from the two
    endpoint features, their squared distance and the edge feature, moves the
    node positions with the positional encoder, sums the messages onto each node
    and updates the node features from the old features and the summed messages.

    Node features only see squared distances, so they are invariant under
    rotations, reflections and translations of the positions, while the
    positions transform like the input.
    """

    def __init__(
        self,
        pe: EEquivGraphPE,
        nn_edge: Callable[[torch.Tensor], torch.Tensor],
        nn_h: Callable[[torch.Tensor], torch.Tensor],
        aggr: str | Aggregation = Aggregation.SUM,
    ):
        """
        Parameters
        ----------
        pe : EEquivGraphPE
            Positional encoder (φ_x in the paper)
        nn_edge : Callable
            Edge transform (φ_e), ``2 * in_dim + edge_dim + 1 -> out_dim``
        nn_h : Callable
            Node transform (φ_h), ``in_dim + out_dim -> out_dim``
        aggr : str | Aggregation, optional
            Reduction of the messages onto nodes (default: sum)
        """
        super().__init__()

        self.pe = pe
        self.nn_edge = nn_edge
        self.nn_h = nn_h
        self.aggr = Aggregation.parse(aggr)

        if self.aggr is None:
            raise ValueError("EEquivGraphConv requires an aggregation, node updates need aggregated messages")

    @classmethod
    def from_dims(
        cls,
        ch: tuple[int, int],
        pos_dim: int,
        edge_dim: int,
        init: Callable[[torch.Tensor], torch.Tensor] = nn.init.xavier_uniform_,
        bias: bool = True,
        aggr: str | Aggregation = Aggregation.SUM,
        pe_aggr: str | Aggregation = Aggregation.MEAN,
    ) -> "EEquivGraphConv":
        """
        Build the layer with dense transforms.

        Parameters
        ----------
        ch : tuple[int, int]
            ``(in_dim, out_dim)`` node feature dimensions
        pos_dim : int
            Dimension of the node positions
        edge_dim : int
            Dimension of the edge features
        init : Callable, optional
            Weight initializer applied to every transform
        bias : bool, optional
            Whether the transforms have a bias
        aggr : str | Aggregation, optional
            Reduction of the messages onto nodes
        pe_aggr : str | Aggregation, optional
            Reduction used by the positional encoder
        """
        in_dim, out_dim = ch

        nn_edge = dense(2 * in_dim + edge_dim + 1, out_dim, init=init, bias=bias)
        pe = EEquivGraphPE.from_dims((out_dim, pos_dim), init=init, bias=bias, aggr=pe_aggr)
        nn_h = dense(in_dim + out_dim, out_dim, init=init, bias=bias)

        logger.debug(
            f"Built EEquivGraphConv with in_dim={in_dim}, out_dim={out_dim}, pos_dim={pos_dim}, edge_dim={edge_dim}"
        )

        return cls(pe, nn_edge, nn_h, aggr=aggr)

    def trainable(self) -> OrderedDict[str, nn.Module]:
        """Trainable sub-components by role."""
        return OrderedDict(position=self.pe, edge=self.nn_edge, node=self.nn_h)

    def phi_edge(self, h_i: torch.Tensor, h_j: torch.Tensor, dist: torch.Tensor, e: torch.Tensor) -> torch.Tensor:
        return self.nn_edge(torch.cat([h_i, h_j, dist, e], dim=-1))

    def message(
        self,
        h_i: torch.Tensor,
        h_j: torch.Tensor,
        x_i: torch.Tensor,
        x_j: torch.Tensor,
        e: torch.Tensor,
    ) -> torch.Tensor:
        """
        Compute one message per adjacency entry.

        All inputs are already gathered, one row per entry.

        Parameters
        ----------
        h_i, h_j : torch.Tensor
            Features of the node and of its neighbor [(n_batch,) n_entries, in_dim]
        x_i, x_j : torch.Tensor
            Positions of the node and of its neighbor [(n_batch,) n_entries, pos_dim]
        e : torch.Tensor
            Edge features [(n_batch,) n_entries, edge_dim]

        Returns
        -------
        torch.Tensor
            Messages [(n_batch,) n_entries, out_dim]
        """
        dist = torch.sum((x_i - x_j) ** 2, dim=-1, keepdim=True)
        return self.phi_edge(h_i, h_j, dist, e)

    def aggregate_neighbors(
        self,
        adjacency: AdjacencyView,
        aggr: str | Aggregation | None,
        messages: torch.Tensor,
    ) -> torch.Tensor | None:
        """
        Reduce the messages of every entry onto its node.

        Messages [n_entries, out_dim] give [n_nodes, out_dim]; batched messages
        [n_batch, n_entries, out_dim] give [n_batch, n_nodes, out_dim]. Nodes
        without entries receive zeros. ``aggr=None`` skips aggregation and
        returns None.
        """
        if aggr is None:
            return None

        return scatter(aggr, messages, adjacency.xs, adjacency.num_nodes)

    def update(self, m: torch.Tensor | None, h: torch.Tensor) -> torch.Tensor:
        if m is None:
            raise ValueError("EEquivGraphConv cannot update node features without aggregated messages")

        return self.nn_h(torch.cat([h, m], dim=-1))

    def propagate(
        self,
        graph: AdjacencyView | FeaturedGraph,
        edge_feature: torch.Tensor,
        node_feature: torch.Tensor,
        positional_feature: torch.Tensor,
        aggr: str | Aggregation | None,
    ) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        Run message, positional update, aggregation and node update once.

        Parameters
        ----------
        graph : AdjacencyView | FeaturedGraph
            Topology; a featured graph is converted to its adjacency view
        edge_feature : torch.Tensor
            Edge features [(n_batch,) n_edges, edge_dim]
        node_feature : torch.Tensor
            Node features [(n_batch,) n_nodes, in_dim]
        positional_feature : torch.Tensor
            Node positions [(n_batch,) n_nodes, pos_dim]
        aggr : str | Aggregation | None
            Reduction of the messages onto nodes

        Returns
        -------
        tuple[torch.Tensor, torch.Tensor, torch.Tensor]
            Tuple of (messages, updated_node_features, updated_positions)
        """
        adjacency = graph.adjacency() if isinstance(graph, FeaturedGraph) else graph

        messages = self.message(
            gather(node_feature, adjacency.xs),
            gather(node_feature, adjacency.nbrs),
            gather(positional_feature, adjacency.xs),
            gather(positional_feature, adjacency.nbrs),
            gather(edge_feature, adjacency.es),
        )

        # The positional encoder works on per-entry messages, the node update on per-node sums
        x = self.pe.positional_encode(adjacency, positional_feature, messages)
        m = self.aggregate_neighbors(adjacency, aggr, messages)
        h = self.update(m, node_feature)

        return messages, h, x

    def forward(self, fg: FeaturedGraph) -> FeaturedGraph:
        nf = fg.node_feature
        ef = fg.edge_feature
        pf = fg.positional_feature

        fg.check_num_nodes(nf)
        fg.check_num_edges(ef)
        fg.check_num_nodes(pf)

        _, h, x = self.propagate(fg, ef, nf, pf, self.aggr)

        return fg.replace(node_feature=h, positional_feature=x)

    def __repr__(self) -> str:
        return f"EEquivGraphConv(edge={self.nn_edge}, position={self.pe.nn_x}, node={self.nn_h})"
