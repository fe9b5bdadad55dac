from amplint.result import Report, Summary, fail, info, internal_error, not_pass, pass_, warn
from amplint.status import Status


def test_not_pass_keeps_order_and_is_idempotent():
    results = [pass_(), warn("a"), pass_("ok"), fail("b"), info("c")]

    filtered = not_pass(results)

    assert filtered == [warn("a"), fail("b"), info("c")]
    assert not_pass(filtered) == filtered


def test_report_keys_are_case_insensitive():
    report = Report.from_outcomes({"LinkRelCanonicalIsOk": [pass_()]})

    assert "linkrelcanonicalisok" in report
    assert "LINKRELCANONICALISOK" in report
    assert report["LinkRelCanonicalIsOk"] == [pass_()]
    assert list(report) == ["linkrelcanonicalisok"]


def test_rows_report_empty_outcome_as_pass():
    report = Report.from_outcomes(
        {
            "Zeta": [fail("broken"), info("note")],
            "Alpha": [],
        }
    )

    assert report.rows() == [
        ("alpha", "PASS", ""),
        ("zeta", "FAIL", "broken"),
        ("zeta", "INFO", "note"),
    ]


def test_summary_counts_rows_by_status():
    report = Report.from_outcomes(
        {
            "a": [],
            "b": [fail("x"), fail("y")],
            "c": [warn("w")],
            "d": [internal_error("boom")],
        }
    )

    summary = report.summary()

    assert summary == Summary(internal_error=1, fail=2, warn=1, info=0, passed=1)
    assert summary.total == 5
    assert summary.as_rows()[0] == ("INTERNAL_ERROR", 1)
    assert summary.as_rows()[-1] == ("PASS", 1)


def test_report_passed_ignores_advisory_statuses():
    assert Report.from_outcomes({"a": [warn("w"), info("i")], "b": []}).passed is True
    assert Report.from_outcomes({"a": [fail("f")]}).passed is False
    assert Report.from_outcomes({"a": [internal_error("e")]}).passed is False


def test_result_to_dict_omits_missing_message():
    assert pass_().to_dict() == {"status": "PASS"}
    assert fail("nope").to_dict() == {"status": "FAIL", "message": "nope"}
    assert Status.WARN.rank < Status.PASS.rank
