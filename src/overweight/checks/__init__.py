from .engine import NO_MATCH_ERROR, CheckResult, CheckRun, CheckSummary, run_checks

__all__ = ["NO_MATCH_ERROR", "CheckResult", "CheckRun", "CheckSummary", "run_checks"]
