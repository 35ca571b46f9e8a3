"""Check runner: executes every check in order, isolating failures."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .checks import CHECKS
from .checks.base import CheckFn
from .errors import CheckError
from .models import AutoFix, CheckResult, Finding, Severity
from .scanner.repo import RepoSnapshot

log = logging.getLogger(__name__)

RUNNER_CATEGORY = "Runner"


@dataclass
class CheckOutcome:
    """Result or error of one check; exactly one is set."""

    name: str
    result: Optional[CheckResult] = None
    error: Optional[CheckError] = None


@dataclass
class RunnerOutput:
    findings: list[Finding] = field(default_factory=list)
    fixes: list[AutoFix] = field(default_factory=list)
    outcomes: list[CheckOutcome] = field(default_factory=list)

    @property
    def failed_checks(self) -> list[str]:
        return [o.name for o in self.outcomes if o.error is not None]


def execute_check(name: str, check_fn: CheckFn, snapshot: RepoSnapshot) -> CheckOutcome:
    """Run one check; any exception becomes a CheckError instead of propagating."""
    log.debug("running check %s", name)
    try:
        result = check_fn(snapshot)
    except Exception as e:
        log.exception("check %s failed", name)
        return CheckOutcome(name=name, error=CheckError(name, e))
    if result is None:
        result = CheckResult()
    return CheckOutcome(name=name, result=result)


def downgrade(error: CheckError) -> Finding:
    """A crashed check is reported as one Critical finding naming it."""
    return Finding(
        Severity.CRITICAL,
        RUNNER_CATEGORY,
        f"Check '{error.check_name}' failed: {type(error.cause).__name__}",
        str(error.cause) or None,
    )


def reduce_outcomes(outcomes: Sequence[CheckOutcome]) -> RunnerOutput:
    out = RunnerOutput(outcomes=list(outcomes))
    for o in outcomes:
        if o.error is not None:
            out.findings.append(downgrade(o.error))
            continue
        out.findings.extend(o.result.findings)
        out.fixes.extend(o.result.fixes)
    return out


def run_checks(
    snapshot: RepoSnapshot,
    checks: Sequence[tuple[str, CheckFn]] | None = None,
) -> RunnerOutput:
    """Run all registered checks (or the given ones) and reduce their results."""
    registry = CHECKS if checks is None else checks
    outcomes = [execute_check(name, fn, snapshot) for name, fn in registry]
    output = reduce_outcomes(outcomes)
    log.info(
        "%d checks run, %d findings, %d fixes queued, %d check failures",
        len(outcomes), len(output.findings), len(output.fixes), len(output.failed_checks),
    )
    return output
