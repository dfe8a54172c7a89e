import importlib.metadata
from importlib.metadata import PackageNotFoundError

try:
    __version__ = importlib.metadata.version("eqconv")
except PackageNotFoundError:
    __version__ = None


from . import cmdline, graph, hydra_config, model

__all__ = ["cmdline", "graph", "hydra_config", "model"]
