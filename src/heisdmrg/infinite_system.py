import enum
import logging

from heisdmrg import superblock as sb
from heisdmrg.block import two_site_block
from heisdmrg.errors import DimensionMismatchError
from heisdmrg.storage import INFINITE_CONTEXT

logger = logging.getLogger(__name__)


class TruncationState(enum.IntEnum):
    PRE_CAP = 0      # basis doubles freely, nothing is thrown away
    ONSET = 1        # the doubled basis would exceed the cap
    STABILIZING = 2  # basis dimension locked at the cap
    STEADY = 3       # identity locked at twice the cap


class TruncationSchedule:
    """
    Tracks how many states the infinite system algorithm keeps.

    While 2 * basis_dim <= max_states the basis doubles every step. The first
    step where it would not, the schedule passes ONSET -> STABILIZING -> STEADY:
    the basis dimension is fixed at max_states once the truncation has been
    done, and the identity used to build the coupling operators settles at
    2 * max_states once the block has been enlarged. After that the block
    always has dimension 2 * max_states.

    Each step calls next_states_to_keep(), decide(), lock_basis() and
    lock_identity(), in that order.
    """

    def __init__(self, max_states):
        if max_states < 1:
            raise ValueError(f"number of states to keep must be positive, got {max_states}")
        self.max_states = max_states
        self.state = TruncationState.PRE_CAP
        # The two-site seed: basis of 2 states per half, 4 in the block.
        self.basis_dim = 2
        self.states_to_keep = 2
        self.identity_dim = 4
        self.onset_size = None

    def next_states_to_keep(self):
        self.states_to_keep = min(2 * self.states_to_keep, self.max_states)
        return self.states_to_keep

    def decide(self, sites):
        # sites: size of the block being truncated.
        if 2 * self.basis_dim <= self.max_states:
            self.basis_dim *= 2
        elif self.state == TruncationState.PRE_CAP:
            self.state = TruncationState.ONSET
            self.onset_size = sites
            logger.info("truncation starts at %d sites per block", sites)

    def lock_basis(self):
        if self.state == TruncationState.ONSET:
            self.state = TruncationState.STABILIZING
            self.basis_dim = self.max_states

    def lock_identity(self):
        if self.state == TruncationState.STEADY:
            return
        if self.state == TruncationState.STABILIZING:
            self.state = TruncationState.STEADY
            self.identity_dim = 2 * self.max_states
            logger.info("block dimension fixed at %d", self.identity_dim)
        else:
            self.identity_dim = 2 * self.basis_dim


class InfiniteSystemBuilder:

    def __init__(self, max_states, number_of_sites, store, report=None):
        """
        Grow a block from two sites up to half the chain, using a reflection
        of the block as its environment.
        max_states - maximum number of states kept per block.
        number_of_sites - length of the full chain.
        store - block store; a block is written after every added site.
        report - called with an EnergyRecord after every diagonalization.
        """

        self.max_states = max_states
        self.number_of_sites = number_of_sites
        self.store = store
        self.report = report
        self.schedule = TruncationSchedule(max_states)
        self.block = two_site_block()
        # Number of states kept at each step.
        self.kept_states = []

    def step(self):
        block = self.block
        sites = block.size
        keep = self.schedule.next_states_to_keep()
        self.schedule.decide(sites)

        energy, truncated, _ = sb.dmrg_step(block, block, keep)
        record = sb.EnergyRecord(sites, sites, energy / (2 * sites))
        if self.report is not None:
            self.report(record)
        self.kept_states.append(truncated.dim)

        self.schedule.lock_basis()
        enlarged = truncated.add_spin()
        self.schedule.lock_identity()
        if enlarged.dim != self.schedule.identity_dim:
            raise DimensionMismatchError(
                f"block of {enlarged.size} sites has dimension {enlarged.dim}, "
                f"truncation schedule expects {self.schedule.identity_dim}")

        self.block = enlarged
        self.store.write(enlarged.size, enlarged, context=INFINITE_CONTEXT)
        return record

    def run(self):
        """
        Run the infinite system algorithm.
        Returns the list of EnergyRecords, one per step.
        """

        records = []
        while self.block.size <= self.number_of_sites // 2:
            records.append(self.step())
        logger.info("infinite system algorithm done, block of %d sites with %d states",
                    self.block.size, self.block.dim)
        return records
