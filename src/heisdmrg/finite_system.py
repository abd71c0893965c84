import logging

from heisdmrg import superblock as sb

logger = logging.getLogger(__name__)


def min_environment_size(max_states, number_of_sites):
    """
    Smallest environment (at least 3 sites, shorter than the chain) whose
    untruncated basis of 2**size states holds 2 * max_states states. Sweeps
    turn around there, since an environment that small is represented exactly.
    """

    for size in range(3, number_of_sites):
        if 2 ** size >= 2 * max_states:
            return size
    raise ValueError(
        f"a chain of {number_of_sites} sites is too short to keep {max_states} states")


class FiniteSystemSweeper:

    def __init__(self, max_states, number_of_sites, store, report=None):
        """
        Sweep the split between system and environment along the chain.
        The system grows one site per step; the environment of the matching
        size is read back from `store`.
        max_states - number of states kept in every truncation.
        number_of_sites - length of the full chain.
        store - block store filled by the infinite system algorithm.
        report - called with an EnergyRecord after every diagonalization.
        """

        self.max_states = max_states
        self.number_of_sites = number_of_sites
        self.store = store
        self.report = report
        self.min_environment = min_environment_size(max_states, number_of_sites)
        self.kept_states = []

    def run_half_sweep(self, system, half_sweep):
        """
        Grow `system` until the environment reaches its minimum size.
        On odd half-sweeps the system is on the right, so the sites are
        reported as (environment, system).
        Returns the records of the half-sweep.
        """

        records = []
        n = self.number_of_sites
        sites = system.size
        while sites <= n - self.min_environment:
            sites_in_environment = n - sites
            environment = self.store.read(sites_in_environment)

            energy, truncated, _ = sb.dmrg_step(system, environment, self.max_states)
            if half_sweep % 2 == 0:
                record = sb.EnergyRecord(sites, sites_in_environment, energy / n)
            else:
                record = sb.EnergyRecord(sites_in_environment, sites, energy / n)
            if self.report is not None:
                self.report(record)
            records.append(record)
            self.kept_states.append(truncated.dim)

            # Add a spin to the system block only.
            system = truncated.add_spin()
            sites += 1
            self.store.write(sites, system, context=half_sweep)
        return records

    def run(self, half_sweeps):
        """
        Perform `half_sweeps` half-sweeps, starting from the middle of the
        chain with the block left by the infinite system algorithm.
        Returns the list of EnergyRecords.
        """

        records = []
        if half_sweeps < 1:
            return records
        system = self.store.read(self.number_of_sites // 2)
        for half_sweep in range(half_sweeps):
            logger.info("half-sweep %d from %d sites", half_sweep, system.size)
            records.extend(self.run_half_sweep(system, half_sweep))
            system = self.store.read(self.min_environment)
        return records
