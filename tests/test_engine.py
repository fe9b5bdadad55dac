import asyncio

import pytest

from amplint.catalog import AMP_RULES, AMPSTORY_RULES
from amplint.config import LintConfig
from amplint.context import Context
from amplint.engine import lint, lint_document, run_rule
from amplint.exceptions import CatalogError
from amplint.replay import FixtureClient
from amplint.result import fail, info, pass_, warn
from amplint.status import Status

STORY_HTML = """
<!doctype html>
<html amp>
<head><meta charset="utf-8"><title>Story</title></head>
<body><amp-story standalone title="A story"></amp-story></body>
</html>
"""


def make_context(html="<html><head></head><body></body></html>"):
    return Context.from_body("https://example.com/", html, http=FixtureClient())


class StaticRule:
    def __init__(self, name, results):
        self.name = name
        self._results = results

    async def run(self, context):
        return list(self._results)


class RaisingRule:
    name = "Raises"

    async def run(self, context):
        raise RuntimeError("boom")


class SyncRaisingRule:
    name = "RaisesSynchronously"

    def run(self, context):
        raise KeyError("missing")


class BareExceptionRule:
    name = "RaisesWithoutMessage"

    async def run(self, context):
        raise ValueError()


class WrongShapeRule:
    name = "WrongShape"

    async def run(self, context):
        return pass_()


class SlowRule:
    name = "Slow"

    async def run(self, context):
        await asyncio.sleep(5)
        return [pass_()]


def test_lint_reports_one_entry_per_rule():
    rules = [
        StaticRule("First", [pass_()]),
        StaticRule("Second", [warn("careful")]),
        StaticRule("Third", [fail("broken"), info("fyi")]),
    ]

    report = asyncio.run(lint(rules, make_context()))

    assert len(report) == 3
    assert sorted(report) == ["first", "second", "third"]
    assert report["third"] == [fail("broken"), info("fyi")]


def test_lint_isolates_raising_rules():
    rules = [
        StaticRule("Healthy", [pass_()]),
        RaisingRule(),
        SyncRaisingRule(),
        StaticRule("AlsoHealthy", [warn("advisory")]),
    ]

    report = asyncio.run(lint(rules, make_context()))

    assert report["healthy"] == [pass_()]
    assert report["alsohealthy"] == [warn("advisory")]
    for name in ("raises", "raisessynchronously"):
        (result,) = report[name]
        assert result.status is Status.INTERNAL_ERROR
        assert result.message
    assert report["raises"][0].message == "boom"


class CancelledInnerTaskRule:
    name = "AwaitsCancelledTask"

    async def run(self, context):
        inner = asyncio.ensure_future(asyncio.sleep(10))
        inner.cancel()
        await inner
        return [pass_()]


def test_lint_isolates_rule_raising_cancelled_error():
    rules = [StaticRule("Healthy", [pass_()]), CancelledInnerTaskRule()]

    report = asyncio.run(lint(rules, make_context()))

    assert report["healthy"] == [pass_()]
    (result,) = report["awaitscancelledtask"]
    assert result.status is Status.INTERNAL_ERROR
    assert result.message == "CancelledError"


def test_cancelling_lint_propagates():
    async def scenario():
        task = asyncio.ensure_future(lint([SlowRule()], make_context()))
        await asyncio.sleep(0.01)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(scenario())


def test_internal_error_message_falls_back_to_exception_name():
    report = asyncio.run(lint([BareExceptionRule()], make_context()))

    assert report["raiseswithoutmessage"][0].message == "ValueError"


def test_lint_rejects_non_list_outcomes_as_internal_error():
    report = asyncio.run(lint([WrongShapeRule()], make_context()))

    (result,) = report["wrongshape"]
    assert result.status is Status.INTERNAL_ERROR
    assert "expected a list of Result" in result.message


def test_lint_times_out_slow_rules():
    rules = [SlowRule(), StaticRule("Fast", [pass_()])]

    report = asyncio.run(lint(rules, make_context(), rule_timeout=0.05))

    assert report["slow"][0].status is Status.INTERNAL_ERROR
    assert "timed out" in report["slow"][0].message
    assert report["fast"] == [pass_()]


def test_lint_runs_rules_concurrently():
    class Sleeper:
        def __init__(self, name):
            self.name = name

        async def run(self, context):
            await asyncio.sleep(0.2)
            return [pass_()]

    async def scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        report = await lint([Sleeper(f"Sleeper{i}") for i in range(10)], make_context())
        return report, loop.time() - started

    report, elapsed = asyncio.run(scenario())

    assert len(report) == 10
    assert elapsed < 1.0


def test_empty_rule_set_yields_empty_report():
    report = asyncio.run(lint([], make_context()))

    assert len(report) == 0
    assert report.to_dict() == {}


def test_duplicate_rule_names_are_rejected():
    rules = [StaticRule("Same", [pass_()]), StaticRule("SAME", [fail("x")])]

    with pytest.raises(CatalogError):
        asyncio.run(lint(rules, make_context()))


def test_run_rule_keeps_empty_list_outcome():
    results = asyncio.run(run_rule(StaticRule("Empty", []), make_context()))

    assert results == []


def test_lint_document_selects_story_rules():
    context = Context.from_body(
        "https://example.com/",
        STORY_HTML,
        http=FixtureClient(),
        config=LintConfig(validator_command=("amphtml-validator-not-installed",)),
    )

    report = asyncio.run(lint_document(context, mode="ampstory"))

    assert set(report) == {rule.name.lower() for rule in AMPSTORY_RULES}
    assert {rule.name.lower() for rule in AMP_RULES} < set(report)


def test_lint_document_with_unknown_mode_is_empty():
    report = asyncio.run(lint_document(make_context(), mode="amp4email"))

    assert len(report) == 0
