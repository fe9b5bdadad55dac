"""Execution engine: run a rule set concurrently and fold the outcomes into a report."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, List, Optional, Sequence, Tuple

from .catalog import ensure_unique, rules_for_mode
from .context import Context
from .result import Report, Result, internal_error
from .rules import Rule

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _normalize(rule: Rule, outcome: Any) -> List[Result]:
    if isinstance(outcome, (list, tuple)) and all(isinstance(item, Result) for item in outcome):
        return list(outcome)
    return [internal_error(f"rule [{rule.name}] returned {type(outcome).__name__}, expected a list of Result")]


async def _invoke(rule: Rule, context: Context) -> Any:
    outcome = rule.run(context)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


async def run_rule(rule: Rule, context: Context, timeout: Optional[float] = None) -> List[Result]:
    """Run one rule, converting anything it raises into an INTERNAL_ERROR result."""

    logger.debug("rule [%s] started", rule.name)
    try:
        outcome = await asyncio.wait_for(_invoke(rule, context), timeout)
    except asyncio.TimeoutError:
        logger.warning("rule [%s] timed out after %ss", rule.name, timeout)
        return [internal_error(f"rule timed out after {timeout}s")]
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("rule [%s] raised %s: %s", rule.name, exc.__class__.__name__, exc, exc_info=True)
        return [internal_error(_describe(exc))]
    results = _normalize(rule, outcome)
    logger.debug("rule [%s] finished with %d result(s)", rule.name, len(results))
    return results


async def lint(rules: Sequence[Rule], context: Context, *, rule_timeout: Optional[float] = None) -> Report:
    """Run every rule against ``context`` concurrently and collect a ``Report``.

    The report has one entry per rule, keyed by lower-cased name. A rule that
    raises, times out or returns the wrong shape gets an INTERNAL_ERROR entry;
    the other rules are unaffected.
    """

    rules = list(rules)
    ensure_unique(rules)
    timeout = context.config.rule_timeout if rule_timeout is None else rule_timeout
    tasks = [asyncio.ensure_future(run_rule(rule, context, timeout)) for rule in rules]
    # Cancelling lint itself still propagates out of gather.
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    pairs: List[Tuple[str, List[Result]]] = []
    for rule, outcome in zip(rules, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("rule [%s] aborted with %s", rule.name, outcome.__class__.__name__)
            outcome = [internal_error(_describe(outcome))]
        pairs.append((rule.name, outcome))
    return Report.from_outcomes(dict(pairs))


async def lint_document(context: Context, mode: str = "auto") -> Report:
    """Select the rule set for ``context.document`` and lint it."""

    return await lint(rules_for_mode(mode, context.document), context)
