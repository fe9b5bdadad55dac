import json

from amplint.formatters import format_html, format_json, format_text, format_tsv, outputter_for
from amplint.result import Report, fail, pass_, warn


def sample_report():
    return Report.from_outcomes(
        {
            "IsValid": [pass_()],
            "AmpImgHeightWidthIsOk": [],
            "LinkRelCanonicalIsOk": [fail("actual [https://a/], expected <https://b/>")],
            "AmpVideoIsSmall": [warn("line one\nline\ttwo")],
        }
    )


def test_json_output_is_keyed_by_rule():
    data = json.loads(format_json(sample_report()))

    assert data["isvalid"] == [{"status": "PASS"}]
    assert data["ampimgheightwidthisok"] == []
    assert data["linkrelcanonicalisok"][0]["status"] == "FAIL"


def test_tsv_output_has_header_and_flattened_rows():
    lines = format_tsv(sample_report()).split("\n")

    assert lines[0] == "name\tstatus\tmessage"
    assert "ampimgheightwidthisok\tPASS\t" in lines
    assert "ampvideoissmall\tWARN\tline one line two" in lines
    assert all(line.count("\t") == 2 for line in lines)


def test_html_output_escapes_cells():
    output = format_html(sample_report())

    assert output.startswith('<table class="amplint">')
    assert "<td>ampimgheightwidthisok</td><td>PASS</td><td></td>" in output
    assert "&lt;https://b/&gt;" in output
    assert "<https://b/>" not in output


def test_text_output_lists_rules_and_summary():
    output = format_text(sample_report())

    assert "linkrelcanonicalisok (FAIL)" in output
    assert "  actual [https://a/], expected <https://b/>" in output
    assert "Lint Summary" in output
    assert "Rules     : 4" in output
    assert "Results   : 4" in output


def test_unknown_format_falls_back_to_text():
    assert outputter_for("yaml") is format_text
    assert outputter_for("TSV") is format_tsv
