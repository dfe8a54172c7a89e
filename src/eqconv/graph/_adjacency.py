from dataclasses import dataclass

import torch


@dataclass(frozen=True)
class AdjacencyView:
    """
    Flattened, read-only view of a graph topology as parallel index arrays.

    Entry ``k`` attaches neighbor ``nbrs[k]`` to node ``xs[k]``; messages computed
    for the entry are aggregated onto ``xs[k]``. ``es[k]`` is the row of the edge
    feature tensor describing the entry, so both directions of an undirected edge
    share one edge feature.
    """

    xs: torch.Tensor
    nbrs: torch.Tensor
    es: torch.Tensor
    num_nodes: int
    num_edges: int

    def __post_init__(self):
        if not (len(self.xs) == len(self.nbrs) == len(self.es)):
            raise ValueError(
                f"Index arrays must have equal length, got xs={len(self.xs)}, nbrs={len(self.nbrs)}, es={len(self.es)}"
            )

    def __len__(self) -> int:
        return len(self.xs)

    @classmethod
    def from_edge_index(cls, edge_index: torch.Tensor, num_nodes: int, directed: bool = True) -> "AdjacencyView":
        """
        Parameters
        ----------
        edge_index : torch.Tensor
            Edge list [2, n_edges]; row 0 holds the node each edge is attached to,
            row 1 its neighbor
        num_nodes : int
            Number of nodes in the graph
        directed : bool, optional
            If False, every non-loop edge also contributes the reversed entry

        Returns
        -------
        AdjacencyView
        """
        if edge_index.dim() != 2 or edge_index.shape[0] != 2:
            raise ValueError(f"edge_index must have shape [2, n_edges], got {tuple(edge_index.shape)}")

        edge_index = edge_index.long()
        xs, nbrs = edge_index[0], edge_index[1]
        es = torch.arange(edge_index.shape[1], device=edge_index.device)

        if not directed:
            not_loop = xs != nbrs
            xs, nbrs, es = (
                torch.cat([xs, nbrs[not_loop]]),
                torch.cat([nbrs, xs[not_loop]]),
                torch.cat([es, es[not_loop]]),
            )

        return cls(xs=xs, nbrs=nbrs, es=es, num_nodes=int(num_nodes), num_edges=edge_index.shape[1])

