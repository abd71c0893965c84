import numpy as np

from heisdmrg.errors import DimensionMismatchError


def frozen(array):
    # Read-only float copy of an array.
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


# Single-site spin-1/2 operators.
sz = frozen([[0.5, 0.0], [0.0, -0.5]])
sp = frozen([[0.0, 1.0], [0.0, 0.0]])
sm = frozen([[0.0, 0.0], [1.0, 0.0]])
id2 = frozen(np.eye(2))

# Operators on a bare site, in the (S^z, S^+, S^-) order used for end_ops.
site_ops = (sz, sp, sm)


def identity(n):
    # Identity on an n-state basis.
    if n < 1:
        raise DimensionMismatchError(f"identity of dimension {n} requested")
    return np.eye(n)


def contract(left, right):
    """
    Outer product of two operators as a rank-4 tensor,
    T[i, j, k, l] = left[i, k] * right[j, l].
    """

    left = np.asarray(left)
    right = np.asarray(right)
    if left.ndim != 2 or right.ndim != 2:
        raise DimensionMismatchError(
            f"cannot contract operators of rank {left.ndim} and {right.ndim}")
    return np.einsum("ik,jl->ijkl", left, right)


def reduce_to_matrix(tensor):
    """
    Flatten the paired indices (i, j) and (k, l) of a rank-4 tensor
    into the row and column index of a matrix.
    """

    tensor = np.asarray(tensor)
    if tensor.ndim != 4:
        raise DimensionMismatchError(
            f"expected a rank-4 tensor, got rank {tensor.ndim}")
    a, b, c, d = tensor.shape
    return tensor.reshape(a * b, c * d)


def tensor_product(left, right):
    # Same layout as np.kron(left, right).
    return reduce_to_matrix(contract(left, right))


# The four coupling patterns used to build block and superblock Hamiltonians.

def left_term(ham, dim):
    # H (x) I
    return tensor_product(ham, identity(dim))


def right_term(ham, dim):
    # I (x) H
    return tensor_product(identity(dim), ham)


def zz_term(ops_a, ops_b):
    # S^z_a (x) S^z_b
    return tensor_product(ops_a[0], ops_b[0])


def flip_term(ops_a, ops_b):
    # 1/2 (S^+_a (x) S^-_b + S^-_a (x) S^+_b)
    return 0.5 * (tensor_product(ops_a[1], ops_b[2])
                  + tensor_product(ops_a[2], ops_b[1]))


def exchange_term(ops_a, ops_b):
    """
    Heisenberg exchange S_a . S_b between two sites living in
    different Hilbert spaces (e.g. two blocks).
    ops_a, ops_b: (S^z, S^+, S^-) for each site.
    """

    return zz_term(ops_a, ops_b) + flip_term(ops_a, ops_b)


def rotate_and_truncate(operator, trans_op):
    """
    Similarity transform O^T X O of an operator into the basis spanned by
    the columns of trans_op.
    """

    if operator.shape[0] != trans_op.shape[0]:
        raise DimensionMismatchError(
            f"transformation of shape {trans_op.shape} cannot act on "
            f"an operator of shape {operator.shape}")
    return trans_op.T @ operator @ trans_op


def two_spin_hamiltonian():
    # Hamiltonian of 2 spins in the default basis.
    return exchange_term(site_ops, site_ops)
