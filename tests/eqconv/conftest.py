import logging

import pytest
import torch

from eqconv.graph import FeaturedGraph


@pytest.fixture(autouse=True)
def configure_logging():
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


@pytest.fixture
def random_graph():
    """Small directed graph with an isolated last node, in double precision."""
    torch.manual_seed(0)

    num_nodes = 6
    edge_index = torch.tensor(
        [
            [0, 0, 1, 2, 3, 4, 1, 2],
            [1, 2, 0, 3, 4, 0, 3, 1],
        ]
    )

    return FeaturedGraph(
        edge_index=edge_index,
        num_nodes=num_nodes,
        node_feature=torch.randn(num_nodes, 3, dtype=torch.double),
        edge_feature=torch.randn(edge_index.shape[1], 2, dtype=torch.double),
        positional_feature=torch.randn(num_nodes, 3, dtype=torch.double),
    )
