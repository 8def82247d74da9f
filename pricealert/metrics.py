from __future__ import annotations

from prometheus_client import Counter, Histogram

RULE_EVALUATIONS = Counter(
    "rule_evaluations_total", "Rule outcomes per evaluation pass", ["outcome"]
)
RULE_ERRORS = Counter(
    "rule_evaluation_errors_total", "Rules that raised while being evaluated"
)
FIRINGS = Counter(
    "rule_firings_total", "Rules whose condition was met", ["suppressed"]
)
PASS_SECONDS = Histogram(
    "evaluation_pass_seconds", "Time spent on one evaluation pass"
)
PASS_FAILURES = Counter(
    "evaluation_pass_failures_total",
    "Passes aborted because rules or prices could not be loaded",
)
