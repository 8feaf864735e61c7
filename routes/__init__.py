# Routes package for Hydra consensus
from .consensus import router as consensus_router, configure_consensus

__all__ = [
    'consensus_router', 'configure_consensus',
]
