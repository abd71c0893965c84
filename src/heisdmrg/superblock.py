import logging
from collections import namedtuple

import numpy as np
import scipy.linalg as la
import scipy.sparse as sp
from scipy.sparse.linalg import eigsh, ArpackNoConvergence

from heisdmrg import operators as ops
from heisdmrg.errors import ConvergenceError, DimensionMismatchError

logger = logging.getLogger(__name__)

# Superblocks up to this dimension are diagonalized densely.
DENSE_LIMIT = 64
# Seed for the Lanczos starting vector, so that runs are reproducible.
LANCZOS_SEED = 1234

# One line of output: sites in the left block, sites in the right block,
# and the ground state energy per site of the superblock.
EnergyRecord = namedtuple("EnergyRecord", ["left_sites", "right_sites", "energy_per_site"])


def format_record(record):
    return "%d %d %.16g" % (record.left_sites, record.right_sites, record.energy_per_site)


def print_record(record):
    print(format_record(record))


def make_superblock_hamiltonian(system, environment):
    """
    Make the Hamiltonian of the chain formed by joining two blocks
    at their end sites. The two blocks can have different sizes.
    The system basis is the outer (row-major) index of the result.
    """

    ham = ops.left_term(system.hamiltonian, environment.dim) \
        + ops.right_term(environment.hamiltonian, system.dim)
    coupling = ops.exchange_term(system.end_ops, environment.end_ops)
    if coupling.shape != ham.shape:
        raise DimensionMismatchError(
            f"coupling of shape {coupling.shape} does not match "
            f"superblock of shape {ham.shape}")
    return ham + coupling


def ground_state(hamiltonian, shape):
    """
    Find the lowest eigenpair of a symmetric Hamiltonian.
    hamiltonian - dense square matrix.
    shape - (rows, cols) to reshape the ground state into.
    Returns (energy, wavefunction) with the wavefunction as a matrix.
    """

    n = hamiltonian.shape[0]
    if hamiltonian.shape != (n, n) or shape[0] * shape[1] != n:
        raise DimensionMismatchError(
            f"cannot take a ground state of shape {shape} "
            f"from a Hamiltonian of shape {hamiltonian.shape}")
    if n <= DENSE_LIMIT:
        w, v = la.eigh(hamiltonian, subset_by_index=[0, 0])
    else:
        v0 = np.random.default_rng(LANCZOS_SEED).standard_normal(n)
        try:
            w, v = eigsh(sp.csr_matrix(hamiltonian), k=1, which="SA", v0=v0)
        except ArpackNoConvergence as exc:
            raise ConvergenceError(
                f"Lanczos did not converge for a superblock of dimension {n}") from exc
    energy = float(w[0])
    psi0 = v[:, 0]
    # Fix the overall sign so that equal inputs give equal outputs.
    if psi0[np.argmax(np.abs(psi0))] < 0:
        psi0 = -psi0
    return energy, psi0.reshape(shape)


def solve_superblock(system, environment):
    # Build the superblock and return its ground state energy and wavefunction,
    # the latter with system rows and environment columns.
    hamiltonian_sb = make_superblock_hamiltonian(system, environment)
    return ground_state(hamiltonian_sb, (system.dim, environment.dim))


def reduced_density_matrix(psi):
    # Trace out the environment (the columns of psi).
    return psi @ psi.T


def truncation_operator(rho, keep):
    """
    Make the operator for truncating the basis of a block.
    rho - reduced density matrix of the block.
    keep - number of states to keep.
    Returns the isometry whose columns are the `keep` eigenvectors of rho with
    the largest eigenvalues, and the truncation error.
    """

    dim = rho.shape[0]
    if not 1 <= keep <= dim:
        raise DimensionMismatchError(
            f"cannot keep {keep} states of a {dim}-dimensional basis")
    evals, evecs = la.eigh(rho)
    # Largest eigenvalue first. The stable sort keeps ties in index order.
    order = np.argsort(-evals, kind="stable")[:keep]
    trans_op = evecs[:, order]
    signs = np.sign(trans_op[np.argmax(np.abs(trans_op), axis=0), np.arange(keep)])
    trans_op = trans_op * np.where(signs == 0, 1.0, signs)
    truncation_error = 1.0 - float(np.sum(evals[order]))
    logger.debug("kept %d of %d states, truncation error %.3e", keep, dim, truncation_error)
    return trans_op, truncation_error


def dmrg_step(system, environment, keep):
    """
    Perform a single DMRG step: diagonalize the superblock made of `system`
    and `environment`, then truncate the system block to `keep` states.
    Returns (energy, truncated system block, truncation error).
    """

    energy, psi0 = solve_superblock(system, environment)
    rho = reduced_density_matrix(psi0)
    trans_op, truncation_error = truncation_operator(rho, keep)
    return energy, system.truncate_operators(trans_op), truncation_error
