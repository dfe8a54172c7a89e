from ._propagate import propagate

__all__ = ["propagate"]
