import logging

import hydra
import lightning.pytorch as pl
import torch
from omegaconf import DictConfig, OmegaConf

from eqconv.graph import FeaturedGraph, radius_graph

logger = logging.getLogger(__name__)


def _random_point_cloud_graph(
    num_nodes: int,
    in_dim: int,
    edge_dim: int,
    pos_dim: int,
    cutoff: float,
    directed: bool = True,
    batch_size: int | None = None,
    scale: float = 1.0,
) -> FeaturedGraph:
    batch_shape = () if batch_size is None else (batch_size,)

    positions = torch.rand(*batch_shape, num_nodes, pos_dim) * scale

    # every graph of a batch shares the topology of the first one
    edge_index = radius_graph(positions.reshape(-1, num_nodes, pos_dim)[0], cutoff=cutoff)
    if not directed:
        edge_index = edge_index[:, edge_index[0] < edge_index[1]]

    return FeaturedGraph(
        edge_index=edge_index,
        num_nodes=num_nodes,
        node_feature=torch.randn(*batch_shape, num_nodes, in_dim),
        edge_feature=torch.randn(*batch_shape, edge_index.shape[1], edge_dim),
        positional_feature=positions,
        directed=directed,
    )


def _random_orthogonal(dim: int) -> torch.Tensor:
    q, r = torch.linalg.qr(torch.randn(dim, dim))
    return q * torch.sign(torch.diagonal(r)).unsqueeze(0)


@hydra.main(version_base=None, config_path="../hydra_config", config_name="propagate")
def propagate(cfg: DictConfig) -> FeaturedGraph:
    log_cfg = OmegaConf.to_container(cfg, throw_on_missing=True, resolve=True)
    print(OmegaConf.to_yaml(log_cfg))

    if cfg.get("seed") is not None:
        pl.seed_everything(cfg.seed)

    fg = _random_point_cloud_graph(**cfg.graph)
    logger.info(f"Built graph with {fg.num_nodes} nodes and {fg.num_edges} edges (batch size: {fg.batch_size})")

    layer = hydra.utils.instantiate(cfg.layer)
    logger.info(f"Instantiated {layer}")

    with torch.inference_mode():
        out = layer(fg)

        logger.info(
            f"node_feature: {tuple(fg.node_feature.shape)} -> {tuple(out.node_feature.shape)}, "
            f"positional_feature: {tuple(fg.positional_feature.shape)} -> {tuple(out.positional_feature.shape)}"
        )

        if cfg.get("equivariance_check"):
            R = _random_orthogonal(cfg.graph.pos_dim)
            t = torch.randn(cfg.graph.pos_dim)

            moved = layer(fg.replace(positional_feature=fg.positional_feature @ R.T + t))

            h_err = (moved.node_feature - out.node_feature).abs().max().item()
            x_err = (moved.positional_feature - (out.positional_feature @ R.T + t)).abs().max().item()
            logger.info(f"Equivariance error: node_feature={h_err:.3e}, positional_feature={x_err:.3e}")

    return out
