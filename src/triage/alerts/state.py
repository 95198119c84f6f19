from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from triage.utils.types import IntervalPoint, Snapshot

@dataclass(slots=True)
class SymbolState:
    last_snapshot: Optional[Snapshot] = None
    history: list[IntervalPoint] = field(default_factory=list)

# per-symbol book owned by the refresh routine; the engine only reads the views
@dataclass(slots=True)
class SnapshotBook:
    symbols: dict[str, SymbolState] = field(default_factory=dict)
    max_history: int = 10

    def ensure_symbol(self, symbol: str) -> SymbolState:
        st = self.symbols.get(symbol)
        if st is None:
            st = SymbolState()
            self.symbols[symbol] = st
        return st

    def previous_by_symbol(self) -> dict[str, Snapshot]:
        return {s: st.last_snapshot for s, st in self.symbols.items() if st.last_snapshot is not None}

    def history_by_symbol(self) -> dict[str, list[IntervalPoint]]:
        return {s: list(st.history) for s, st in self.symbols.items() if st.history}

    def update(
        self,
        snapshots: Sequence[Snapshot],
        histories: Optional[Mapping[str, Sequence[IntervalPoint]]] = None,
    ) -> None:
        """Record just-fetched values; call after the engine has evaluated them."""
        for snap in snapshots:
            self.ensure_symbol(snap.symbol).last_snapshot = snap
        for sym, hist in (histories or {}).items():
            if hist:
                self.ensure_symbol(sym).history = list(hist)[-self.max_history:]
