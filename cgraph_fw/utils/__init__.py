from .profiling import OpProfiler, OpStat

__all__ = ["OpProfiler", "OpStat"]
