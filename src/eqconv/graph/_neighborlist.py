import torch


def radius_graph(
    x: torch.Tensor,
    cutoff: float = 5.0,
    loop: bool = False,
) -> torch.Tensor:
    """
    Construct a directed edge list connecting every pair of nodes closer than ``cutoff``.

    Parameters
    ----------
    x : torch.Tensor
        Coordinates [n_nodes, pos_dim]
    cutoff : float, optional
        Distance cutoff for neighbors
    loop : bool, optional
        Whether to connect every node to itself

    Returns
    -------
    torch.Tensor
        Edge list [2, n_edges], both orderings of each pair included
    """
    if cutoff <= 0:
        raise ValueError(f"cutoff must be positive, got {cutoff}")

    n_node = x.shape[0]

    d = torch.cdist(x, x)
    in_range = d < cutoff

    if not loop:
        in_range = torch.logical_and(in_range, ~torch.eye(n_node, dtype=torch.bool, device=x.device))

    Js, Ks = in_range.nonzero(as_tuple=True)

    return torch.stack([Js, Ks])
