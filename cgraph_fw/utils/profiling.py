# cgraph_fw/utils/profiling.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Tuple

logger = logging.getLogger("cgraph_fw.profiling")

# (backend primitive, operand shapes such as "32x784|784x100")
OpKey = Tuple[str, str]


@dataclass
class OpStat:
    calls: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.calls if self.calls else 0.0

    def add(self, ms: float) -> None:
        self.calls += 1
        self.total_ms += ms
        if ms > self.max_ms:
            self.max_ms = ms


class OpProfiler:
    """
    Wall-clock timings of backend primitives, bucketed by operand shapes.

    Disabled profilers cost one attribute check per primitive and record nothing.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.stats: Dict[OpKey, OpStat] = {}

    @contextmanager
    def scope(self, op: str, shapes: str):
        if not self.enabled:
            yield
            return
        t0 = time.perf_counter()
        try:
            yield
        finally:
            ms = (time.perf_counter() - t0) * 1000.0
            self.stats.setdefault((op, shapes), OpStat()).add(ms)

    def by_op(self) -> Dict[str, OpStat]:
        """Timings merged across operand shapes."""
        merged: Dict[str, OpStat] = {}
        for (op, _), st in self.stats.items():
            m = merged.setdefault(op, OpStat())
            m.calls += st.calls
            m.total_ms += st.total_ms
            m.max_ms = max(m.max_ms, st.max_ms)
        return merged

    def reset(self) -> None:
        self.stats.clear()

    def report(self, topk: int = 10) -> None:
        """Logs the `topk` most expensive (op, shapes) buckets at info level."""
        if not self.enabled or not self.stats:
            return
        total = sum(st.total_ms for st in self.stats.values())
        ranked = sorted(self.stats.items(), key=lambda kv: kv[1].total_ms, reverse=True)

        logger.info("backend timings: %d buckets, %.3f ms", len(ranked), total)
        for (op, shapes), st in ranked[:topk]:
            share = 100.0 * st.total_ms / total if total > 0 else 0.0
            logger.info(
                "  %-24s %-28s calls=%-6d avg=%.3fms max=%.3fms (%.1f%%)",
                op, shapes, st.calls, st.avg_ms, st.max_ms, share,
            )
