from .eequiv import EEquivGraphConv, EEquivGraphPE
