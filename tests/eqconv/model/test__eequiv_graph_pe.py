import pytest
import torch
import torch.nn as nn

from eqconv.graph import AdjacencyView, Aggregation
from eqconv.model import EEquivGraphPE


def _constant_weight(in_dim: int, value: float) -> nn.Linear:
    layer = nn.Linear(in_dim, 1).double()
    with torch.no_grad():
        layer.weight.zero_()
        layer.bias.fill_(value)
    return layer


def _random_orthogonal(dim: int) -> torch.Tensor:
    q, _ = torch.linalg.qr(torch.randn(dim, dim, dtype=torch.double))
    return q


class TestEEquivGraphPE:
    def test_from_dims(self):
        pe = EEquivGraphPE.from_dims((5, 3))

        assert isinstance(pe.nn_x, nn.Linear)
        assert pe.nn_x.in_features == 5
        assert pe.nn_x.out_features == 1
        assert pe.pos_dim == 3
        assert pe.aggr is Aggregation.MEAN

    def test_requires_aggregation(self):
        with pytest.raises(ValueError, match="requires an aggregation"):
            EEquivGraphPE(_constant_weight(4, 1.0), aggr=None)

    def test_displacement_update(self):
        pe = EEquivGraphPE(_constant_weight(4, 1.0), pos_dim=3)
        adjacency = AdjacencyView.from_edge_index(torch.tensor([[0], [1]]), num_nodes=2)
        x = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], dtype=torch.double)
        messages = torch.randn(1, 4, dtype=torch.double)

        out = pe.positional_encode(adjacency, x, messages)

        # node 0 moves by x_0 - x_1, node 1 has no entries and stays put
        assert torch.allclose(out, torch.tensor([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0]], dtype=torch.double))

    def test_mean_vs_sum(self):
        adjacency = AdjacencyView.from_edge_index(torch.tensor([[0, 0], [1, 2]]), num_nodes=3)
        x = torch.tensor([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0]], dtype=torch.double)
        messages = torch.zeros(2, 4, dtype=torch.double)

        mean = EEquivGraphPE(_constant_weight(4, 1.0), aggr="mean")(adjacency, x, messages)
        total = EEquivGraphPE(_constant_weight(4, 1.0), aggr="sum")(adjacency, x, messages)

        assert torch.allclose(mean[0], torch.tensor([-0.5, -1.0], dtype=torch.double))
        assert torch.allclose(total[0], torch.tensor([-1.0, -2.0], dtype=torch.double))

    def test_pos_dim_mismatch(self):
        pe = EEquivGraphPE(_constant_weight(4, 1.0), pos_dim=3)
        adjacency = AdjacencyView.from_edge_index(torch.tensor([[0], [1]]), num_nodes=2)

        with pytest.raises(ValueError, match="Expected positions of dimension 3"):
            pe.positional_encode(adjacency, torch.zeros(2, 2, dtype=torch.double), torch.zeros(1, 4, dtype=torch.double))

    def test_equivariance(self):
        torch.manual_seed(1)
        pe = EEquivGraphPE.from_dims((4, 3)).double()
        adjacency = AdjacencyView.from_edge_index(torch.tensor([[0, 1, 2, 2], [1, 2, 0, 1]]), num_nodes=3)
        x = torch.randn(3, 3, dtype=torch.double)
        messages = torch.randn(4, 4, dtype=torch.double)

        R = _random_orthogonal(3)
        t = torch.randn(3, dtype=torch.double)

        out = pe(adjacency, x, messages)
        moved = pe(adjacency, x @ R.T + t, messages)

        assert torch.allclose(moved, out @ R.T + t, atol=1e-10)

    def test_extra_repr(self):
        assert "aggr=mean" in repr(EEquivGraphPE.from_dims((4, 3)))
