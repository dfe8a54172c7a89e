"""
E(n)-equivariant positional encoding.

Coordinate update of equation (4) in "E(n) Equivariant Graph Neural Networks"
(Satorras et al., ICML 2021).
"""

from collections.abc import Callable

import torch
import torch.nn as nn

from eqconv.graph import AdjacencyView, Aggregation, gather, scatter

from ._utils import dense


class EEquivGraphPE(nn.Module):
    """
    Moves every node along the displacements to its neighbors.

    Each displacement ``x_i - x_j`` is scaled by a learned scalar computed from the
    edge message, the scaled displacements are aggregated per node and added to
    the node's position. Messages only depend on invariant quantities, so the
    update commutes with rotations, reflections and translations of ``x``.
    """

    def __init__(
        self,
        nn_x: Callable[[torch.Tensor], torch.Tensor],
        pos_dim: int | None = None,
        aggr: str | Aggregation = Aggregation.MEAN,
    ):
        """
        Parameters
        ----------
        nn_x : Callable
            Coordinate transform mapping an edge message to one scalar weight
        pos_dim : int, optional
            Expected coordinate dimension; checked on every call when given
        aggr : str | Aggregation, optional
            Reduction of the scaled displacements (default: mean)
        """
        super().__init__()

        self.nn_x = nn_x
        self.pos_dim = pos_dim
        self.aggr = Aggregation.parse(aggr)

        if self.aggr is None:
            raise ValueError("EEquivGraphPE requires an aggregation")

    @classmethod
    def from_dims(
        cls,
        ch: tuple[int, int],
        init: Callable[[torch.Tensor], torch.Tensor] = nn.init.xavier_uniform_,
        bias: bool = True,
        aggr: str | Aggregation = Aggregation.MEAN,
    ) -> "EEquivGraphPE":
        """
        Parameters
        ----------
        ch : tuple[int, int]
            ``(message_dim, pos_dim)``
        init : Callable, optional
            Weight initializer
        bias : bool, optional
            Whether the coordinate transform has a bias
        aggr : str | Aggregation, optional
            Reduction of the scaled displacements
        """
        in_dim, pos_dim = ch
        return cls(dense(in_dim, 1, init=init, bias=bias), pos_dim=pos_dim, aggr=aggr)

    def message(self, x_i: torch.Tensor, x_j: torch.Tensor, m_ij: torch.Tensor) -> torch.Tensor:
        return (x_i - x_j) * self.nn_x(m_ij)

    def update(self, m: torch.Tensor, x: torch.Tensor) -> torch.Tensor:
        return x + m

    def positional_encode(self, adjacency: AdjacencyView, x: torch.Tensor, messages: torch.Tensor) -> torch.Tensor:
        """
        Parameters
        ----------
        adjacency : AdjacencyView
            Graph topology
        x : torch.Tensor
            Coordinates [(n_batch,) n_nodes, pos_dim]
        messages : torch.Tensor
            Per-entry edge messages [(n_batch,) n_entries, message_dim]

        Returns
        -------
        torch.Tensor
            Updated coordinates, same shape as ``x``
        """
        if self.pos_dim is not None and x.shape[-1] != self.pos_dim:
            raise ValueError(f"Expected positions of dimension {self.pos_dim}, got {x.shape[-1]}")

        m = self.message(gather(x, adjacency.xs), gather(x, adjacency.nbrs), messages)
        m_bar = scatter(self.aggr, m, adjacency.xs, adjacency.num_nodes)
        return self.update(m_bar, x)

    def forward(self, adjacency: AdjacencyView, x: torch.Tensor, messages: torch.Tensor) -> torch.Tensor:
        return self.positional_encode(adjacency, x, messages)

    def extra_repr(self) -> str:
        return f"pos_dim={self.pos_dim}, aggr={self.aggr.name.lower()}"
