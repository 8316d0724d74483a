from __future__ import annotations

OK = 0
# Budget failures and fatal errors share one code; callers tell them apart by `OverweightError.kind`.
ERR_FAILED = 1
