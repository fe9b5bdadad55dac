import asyncio
import json
import os
import sys

import pytest

from amplint.exceptions import ValidatorUnavailable
from amplint.validator import parse_validator_output, validate_html


def test_parse_output_keyed_by_input_name():
    output = json.dumps(
        {
            "-": {
                "status": "FAIL",
                "errors": [
                    {"line": 3, "col": 7, "severity": "ERROR", "message": "The tag 'img' may only appear as a descendant of tag 'noscript'."},
                ],
            }
        }
    )

    outcome = parse_validator_output(output)

    assert outcome.status == "FAIL"
    assert not outcome.passed
    assert str(outcome.errors[0]) == "3:7 The tag 'img' may only appear as a descendant of tag 'noscript'."


def test_parse_output_without_wrapper():
    outcome = parse_validator_output('{"status": "PASS", "errors": []}')

    assert outcome.passed
    assert outcome.errors == []


@pytest.mark.parametrize("text", ["not json", "[]", '{"a": 1, "b": 2}'])
def test_parse_output_rejects_garbage(text):
    with pytest.raises(ValidatorUnavailable):
        parse_validator_output(text)


def test_missing_validator_binary_is_unavailable():
    with pytest.raises(ValidatorUnavailable):
        asyncio.run(validate_html("<html></html>", ("amphtml-validator-not-installed",)))


def fake_validator(script):
    return (sys.executable, "-c", script)


def test_validator_command_output_is_parsed():
    script = "import sys; sys.stdin.read(); print('{\"-\": {\"status\": \"PASS\", \"errors\": []}}')"

    outcome = asyncio.run(validate_html("<html amp></html>", fake_validator(script)))

    assert outcome.passed


def test_timed_out_validator_is_killed(tmp_path):
    pid_file = tmp_path / "validator.pid"
    script = (
        "import os, time\n"
        f"with open({str(pid_file)!r}, 'w') as handle:\n"
        "    handle.write(str(os.getpid()))\n"
        "time.sleep(30)\n"
    )

    async def scenario():
        await asyncio.wait_for(validate_html("<html></html>", fake_validator(script)), timeout=1.0)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(scenario())

    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
