# netlist/__init__.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Elaboration: flattening of the module hierarchy

"""Elaboration of parsed designs into a flat netlist.

Core Functions:
    elaborate: Resolves the hierarchy below an entry module

Data Model:
    Signal: Entry of the flat signal table (dense index, width, reset)
    Component: Module instance with its scoped-signal table and processes
    Netlist: Signal table plus components in hierarchy pre-order
"""

from .elaborator import elaborate
from .exceptions import ElaborationError
from .netlist import Component, InterfaceBinding, Netlist, Signal
from . import expressions

__all__ = [
    "elaborate",
    "expressions",
    "Component",
    "ElaborationError",
    "InterfaceBinding",
    "Netlist",
    "Signal",
]
