"""
Persistent storage of blocks between DMRG steps.

Blocks are keyed by their size only. The chain is reflection symmetric, so the
block most recently written at a given size serves both as a system and as an
environment. Each write also records a context, "infinite" for the warm-up or
the half-sweep index during the finite sweeps.
"""

import logging
import os

import h5py

from heisdmrg.block import Block
from heisdmrg.errors import MissingBlockError

logger = logging.getLogger(__name__)

INFINITE_CONTEXT = "infinite"


class MemoryBlockStore:
    # Blocks kept in a dictionary for the lifetime of the process.

    def __init__(self):
        self._blocks = {}
        self._contexts = {}

    def write(self, size, block, context=INFINITE_CONTEXT):
        if block.size != size:
            raise ValueError(f"block of size {block.size} written under size {size}")
        self._blocks[size] = block
        self._contexts[size] = str(context)
        logger.debug("stored block of size %d (dim %d, context %r)", size, block.dim, context)

    def read(self, size):
        try:
            block = self._blocks[size]
        except KeyError:
            raise MissingBlockError(f"no block of size {size} has been stored") from None
        logger.debug("loaded block of size %d (context %r)", size, self._contexts[size])
        return block

    def context_of(self, size):
        try:
            return self._contexts[size]
        except KeyError:
            raise MissingBlockError(f"no block of size {size} has been stored") from None

    def sizes(self):
        return sorted(self._blocks)

    def __contains__(self, size):
        return size in self._blocks


class HDF5BlockStore:
    """
    Blocks kept in an HDF5 file, one group per size holding the datasets
    "hamiltonian", "sz", "sp" and "sm".
    The file is opened and closed on every call, so each write is on disk
    before the next read.
    """

    _datasets = ("hamiltonian", "sz", "sp", "sm")

    def __init__(self, path):
        self.path = os.fspath(path)

    @staticmethod
    def _group_name(size):
        return f"block_{size}"

    def write(self, size, block, context=INFINITE_CONTEXT):
        if block.size != size:
            raise ValueError(f"block of size {block.size} written under size {size}")
        name = self._group_name(size)
        with h5py.File(self.path, "a") as f:
            if name in f:
                del f[name]
            group = f.create_group(name)
            arrays = (block.hamiltonian,) + block.end_ops
            for dataset, array in zip(self._datasets, arrays):
                group.create_dataset(dataset, data=array)
            group.attrs["size"] = block.size
            group.attrs["context"] = str(context)
        logger.debug("wrote block of size %d to %s (context %r)", size, self.path, context)

    def _group(self, f, size):
        name = self._group_name(size)
        if name not in f:
            raise MissingBlockError(f"no block of size {size} in {self.path}")
        return f[name]

    def read(self, size):
        if not os.path.exists(self.path):
            raise MissingBlockError(f"no block of size {size}: {self.path} does not exist")
        with h5py.File(self.path, "r") as f:
            group = self._group(f, size)
            hamiltonian, sz, sp, sm = (group[dataset][()] for dataset in self._datasets)
            block_size = int(group.attrs["size"])
        logger.debug("read block of size %d from %s", size, self.path)
        return Block(block_size, hamiltonian, (sz, sp, sm))

    def context_of(self, size):
        # Contexts come back as strings, e.g. "infinite" or "0".
        if not os.path.exists(self.path):
            raise MissingBlockError(f"no block of size {size}: {self.path} does not exist")
        with h5py.File(self.path, "r") as f:
            context = self._group(f, size).attrs["context"]
        if isinstance(context, bytes):
            context = context.decode()
        return context

    def sizes(self):
        if not os.path.exists(self.path):
            return []
        with h5py.File(self.path, "r") as f:
            return sorted(int(f[name].attrs["size"]) for name in f)

    def __contains__(self, size):
        return size in self.sizes()
