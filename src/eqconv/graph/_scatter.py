from enum import Enum

import torch


class Aggregation(str, Enum):
    """Commutative reductions used to combine per-entry values into per-node slots."""

    SUM = "sum"
    MEAN = "mean"
    MAX = "amax"
    MIN = "amin"

    @classmethod
    def parse(cls, aggr: "str | Aggregation | None") -> "Aggregation | None":
        if aggr is None or isinstance(aggr, Aggregation):
            return aggr

        aliases = {"sum": cls.SUM, "add": cls.SUM, "mean": cls.MEAN, "max": cls.MAX, "min": cls.MIN}
        try:
            return aliases[aggr.lower()]
        except KeyError:
            raise ValueError(f"Unsupported aggregation: {aggr!r}. Expected one of {sorted(aliases)}") from None


def gather(x: torch.Tensor, index: torch.Tensor) -> torch.Tensor:
    """
    Replicate rows of ``x`` according to ``index``.

    Works on single graphs ``[n_rows, n_features]`` and on batches
    ``[n_batch, n_rows, n_features]``; the row axis is always ``-2``.
    """
    return x.index_select(-2, index)


def scatter(
    aggr: str | Aggregation,
    src: torch.Tensor,
    index: torch.Tensor,
    dim_size: int,
) -> torch.Tensor:
    """
    Reduce the rows of ``src`` into ``dim_size`` slots given by ``index``.

    Parameters
    ----------
    aggr : str | Aggregation
        Reduction applied to rows sharing a slot
    src : torch.Tensor
        Values [n_entries, n_features] or [n_batch, n_entries, n_features]
    index : torch.Tensor
        Destination slot of every entry [n_entries]
    dim_size : int
        Number of output slots

    Returns
    -------
    torch.Tensor
        Reduced values [dim_size, n_features] or [n_batch, dim_size, n_features].
        Slots that receive no entry are zero.
    """
    aggr = Aggregation.parse(aggr)

    out_shape = (*src.shape[:-2], dim_size, src.shape[-1])
    out = torch.zeros(out_shape, dtype=src.dtype, device=src.device)

    # scatter_reduce_ wants an index with the same shape as src
    view = [1] * src.dim()
    view[-2] = -1
    expanded = index.reshape(view).expand_as(src)

    return out.scatter_reduce_(-2, expanded, src, reduce=aggr.value, include_self=False)
