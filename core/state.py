# core/state.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Global states of the composed system and their packed integer encoding

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple

from handshake.automaton import HandshakeModel


@dataclass(frozen=True, slots=True)
class GlobalState:
    """Snapshot of the whole circuit.

    Attributes:
        locations: Current location of every automaton, in model order
        values: Current value of every signal, in signal-table order
    """

    locations: Tuple[int, ...]
    values: Tuple[int, ...]

    def __str__(self) -> str:
        locs = ",".join(str(loc) for loc in self.locations)
        vals = ",".join(str(v) for v in self.values)
        return f"<L[{locs}] V[{vals}]>"


class StateCodec:
    """Packs a :class:`GlobalState` into a single non-negative integer.

    Each automaton location gets just enough bits for its location count and
    each signal gets exactly its width, so the encoding is a bijection
    between states and codes. Fields are laid out least significant first:
    locations in automaton order, then signal values in index order.
    """

    def __init__(self, model: HandshakeModel):
        self._fields: List[Tuple[int, int]] = []  # (shift, mask)
        shift = 0
        for a in model.automata:
            bits = max(1, (a.location_count - 1).bit_length())
            self._fields.append((shift, (1 << bits) - 1))
            shift += bits
        for sig in model.signals:
            self._fields.append((shift, sig.mask))
            shift += sig.width
        self.bits = shift
        self._locations = len(model.automata)

    def encode(self, state: GlobalState) -> int:
        code = 0
        for (shift, _), v in zip(self._fields, state.locations + state.values):
            code |= v << shift
        return code

    def decode(self, code: int) -> GlobalState:
        fields = [(code >> shift) & m for shift, m in self._fields]
        return GlobalState(tuple(fields[: self._locations]), tuple(fields[self._locations :]))

