class DMRGError(Exception):
    """Base class for fatal errors raised during a DMRG run."""


class DimensionMismatchError(DMRGError, ValueError):
    # Operators of incompatible shape met in a product or a sum.
    pass


class MissingBlockError(DMRGError, KeyError):
    # A block of this size was never written to the store.
    pass


class ConvergenceError(DMRGError, RuntimeError):
    # The iterative eigensolver did not converge.
    pass
