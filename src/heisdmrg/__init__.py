"""DMRG ground state of the open spin-1/2 Heisenberg chain."""

__version__ = "0.1.0"
