# handshake/exceptions.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Exceptions raised while compiling processes into automata

from hdl.exceptions import CircuitInputError, Stage


class ModelError(CircuitInputError):
    """Exception raised when a process cannot be turned into an automaton.

    Raised for names that do not resolve to a scalar signal, assignments to
    constants or interface instances, ``randcase`` statements without any
    arm of non-zero weight and signals wider than the configured bound.
    """

    stage = Stage.MODEL
