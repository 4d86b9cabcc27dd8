# handshake/__init__.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Handshake model: per-process guarded transition automata

"""Construction of the handshake model from an elaborated netlist.

Every ``always``/``initial`` block becomes one :class:`ComponentAutomaton`
attributed to its component. Guards and assignments are compiled once into
width-aware expressions over the flat signal valuation.

Core Functions:
    build_automata: Netlist -> HandshakeModel
"""

from .automaton import (
    ComponentAutomaton,
    GuardedTransition,
    HandshakeModel,
    Synchronization,
    Write,
)
from .builder import DEFAULT_MAX_SIGNAL_WIDTH, build_automata
from .exceptions import ModelError

__all__ = [
    "build_automata",
    "ComponentAutomaton",
    "DEFAULT_MAX_SIGNAL_WIDTH",
    "GuardedTransition",
    "HandshakeModel",
    "ModelError",
    "Synchronization",
    "Write",
]
