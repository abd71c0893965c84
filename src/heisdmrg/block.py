"""
Blocks of spins for the DMRG algorithm.

A block of a given size built by growing the system is used again, unchanged,
as the environment of that size. This relies on the chain Hamiltonian being
translation and reflection symmetric, which holds for the uniform open
Heisenberg chain built here.
"""

import numpy as np

from heisdmrg import operators as ops
from heisdmrg.errors import DimensionMismatchError


class Block:
    # Block for the DMRG algorithm.
    # Consists of a line of spins, stored in a (possibly truncated) basis.
    # Blocks are values: every update returns a new Block.

    def __init__(self, size, hamiltonian, end_ops):
        # size: number of sites in the block.
        # hamiltonian: Hamiltonian of the block in its current basis.
        # end_ops: (S^z, S^+, S^-) of the site at the end of the block,
        #          i.e. the operators that couple to a neighbouring block.

        if size < 1:
            raise ValueError(f"block size must be positive, got {size}")
        hamiltonian = ops.frozen(hamiltonian)
        if hamiltonian.ndim != 2 or hamiltonian.shape[0] != hamiltonian.shape[1]:
            raise DimensionMismatchError(
                f"block Hamiltonian must be square, got shape {hamiltonian.shape}")
        end_ops = tuple(ops.frozen(op) for op in end_ops)
        if len(end_ops) != 3:
            raise ValueError(f"expected 3 end operators, got {len(end_ops)}")
        for op in end_ops:
            if op.shape != hamiltonian.shape:
                raise DimensionMismatchError(
                    f"end operator of shape {op.shape} does not match "
                    f"block Hamiltonian of shape {hamiltonian.shape}")

        self.size = size
        self.hamiltonian = hamiltonian
        self.end_ops = end_ops
        self.dim = hamiltonian.shape[0]

    @property
    def sz(self):
        return self.end_ops[0]

    @property
    def sp(self):
        return self.end_ops[1]

    @property
    def sm(self):
        return self.end_ops[2]

    def __repr__(self):
        return f"Block(size={self.size}, dim={self.dim})"

    def add_spin(self):
        """
        Add a spin to the end of the block.
        Returns a new block one site longer, with twice the basis dimension.
        """

        # H_old (x) I plus the bond between the old end and the new spin.
        hamiltonian = ops.left_term(self.hamiltonian, 2) \
            + ops.exchange_term(self.end_ops, ops.site_ops)
        # The new spin is now the end of the block: I_old (x) S^sigma.
        end_ops = [ops.right_term(op, self.dim) for op in ops.site_ops]
        return Block(self.size + 1, hamiltonian, end_ops)

    def truncate_operators(self, trans_op):
        """
        Transform the operators into a new basis.
        trans_op: matrix whose columns are the new basis vectors.
        """

        trans_op = np.asarray(trans_op)
        if trans_op.ndim != 2:
            raise DimensionMismatchError(
                f"transformation must be a matrix, got shape {trans_op.shape}")
        hamiltonian = ops.rotate_and_truncate(self.hamiltonian, trans_op)
        end_ops = [ops.rotate_and_truncate(op, trans_op) for op in self.end_ops]
        return Block(self.size, hamiltonian, end_ops)


def two_site_block():
    # Initial block of two spins in the default basis.
    # The coupling operators act on the first spin, (S^sigma (x) I).
    end_ops = [ops.left_term(op, 2) for op in ops.site_ops]
    return Block(2, ops.two_spin_hamiltonian(), end_ops)
