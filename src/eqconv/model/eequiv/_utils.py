from collections.abc import Callable

import torch
import torch.nn as nn


def dense(
    in_features: int,
    out_features: int,
    init: Callable[[torch.Tensor], torch.Tensor] = nn.init.xavier_uniform_,
    bias: bool = True,
) -> nn.Linear:
    """Linear layer with weights drawn by ``init`` and a zero bias."""
    layer = nn.Linear(in_features, out_features, bias=bias)
    init(layer.weight)
    if bias:
        nn.init.zeros_(layer.bias)
    return layer
