# netlist/exceptions.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Exceptions raised while flattening the module hierarchy

from hdl.exceptions import CircuitInputError, Stage


class ElaborationError(CircuitInputError):
    """Exception raised when the module hierarchy cannot be flattened.

    Covers unresolved module references, positional port arity mismatches,
    binding errors and irreconcilable signal driver conflicts. Elaboration
    halts on the first error, before any automaton is built.
    """

    stage = Stage.ELABORATION
