#!/usr/bin/env python3

import argparse
import logging

from heisdmrg import config
from heisdmrg.finite_system import FiniteSystemSweeper
from heisdmrg.infinite_system import InfiniteSystemBuilder
from heisdmrg.storage import HDF5BlockStore, MemoryBlockStore
from heisdmrg.superblock import print_record

logger = logging.getLogger(__name__)


def run_dmrg(params, store=None, report=print_record):
    """
    Run the infinite system algorithm followed by the finite system sweeps.
    params - DMRGParameters.
    store - block store; by default an HDF5 file if params.store_path is set,
            else memory.
    report - called with every EnergyRecord as it is produced.
    Returns (infinite_records, finite_records).
    """

    config.validate_parameters(params)
    if store is None:
        if params.store_path is not None:
            store = HDF5BlockStore(params.store_path)
        else:
            store = MemoryBlockStore()
    logger.info("m = %d, %d sites, %d half-sweeps",
                params.max_states, params.number_of_sites, params.half_sweeps)

    builder = InfiniteSystemBuilder(params.max_states, params.number_of_sites, store, report)
    infinite_records = builder.run()
    if report is print_record:
        print("End of the infinite system algorithm")

    sweeper = FiniteSystemSweeper(params.max_states, params.number_of_sites, store, report)
    finite_records = sweeper.run(params.half_sweeps)
    return infinite_records, finite_records


def make_parser():
    parser = argparse.ArgumentParser(
        description="DMRG ground state energy of the spin-1/2 Heisenberg chain.")
    parser.add_argument("--input", type=str, help="JSON file with the run parameters.")
    parser.add_argument("--states", type=int, help="Number of states to keep.")
    parser.add_argument("--sites", type=int, help="Number of sites in the chain.")
    parser.add_argument("--sweeps", type=int, help="Number of finite system half-sweeps.")
    parser.add_argument("--store", type=str, help="HDF5 file to keep the blocks in.")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress (-v) or every truncation (-vv).")
    return parser


def main(argv=None):
    parser = make_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    values = {}
    if args.input is not None:
        try:
            values.update(config.load_parameters(args.input)._asdict())
        except (OSError, ValueError) as exc:
            parser.error(str(exc))
    # Command line flags take precedence over the input file.
    flags = {"max_states": args.states, "number_of_sites": args.sites,
             "half_sweeps": args.sweeps, "store_path": args.store}
    values.update({key: value for key, value in flags.items() if value is not None})
    try:
        params = config.prompt_parameters(values)
        config.validate_parameters(params)
    except ValueError as exc:
        parser.error(str(exc))
    run_dmrg(params)


if __name__ == "__main__":
    main()
