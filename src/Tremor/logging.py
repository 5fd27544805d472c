"""Central logging utilities with optional MPI support."""

import logging as py_logging

try:
    from mpi4py import MPI
    rank = MPI.COMM_WORLD.Get_rank()
except Exception:
    rank = 0

class MPIRankFilter(py_logging.Filter):
    """Filter INFO and DEBUG messages to only emit from rank 0."""
    def __init__(self, rank):
        super().__init__()
        self.rank = rank
    def filter(self, record: py_logging.LogRecord) -> bool:
        if record.levelno <= py_logging.INFO and self.rank != 0:
            return False
        # Warnings and errors can come from any rank, tag them
        record.rank = self.rank
        return True

def get_logger(name: str = None) -> py_logging.Logger:
    """Return a configured logger with MPI rank filtering."""
    logger = py_logging.getLogger(name)
    if not logger.handlers:
        handler = py_logging.StreamHandler()
        fmt = '%(asctime)s - [rank %(rank)d] %(levelname)s - %(message)s'
        handler.setFormatter(py_logging.Formatter(fmt))
        handler.addFilter(MPIRankFilter(rank))
        logger.addHandler(handler)
        logger.setLevel(py_logging.INFO)
        logger.propagate = False
    return logger

def set_level(level) -> None:
    """Set the level of every Tremor logger created so far."""
    for name, logger in py_logging.Logger.manager.loggerDict.items():
        if name.startswith('Tremor') and isinstance(logger, py_logging.Logger):
            logger.setLevel(level)
