import io
from pathlib import Path

import pytest
from PIL import Image

from amplint.config import LintConfig
from amplint.context import Context
from amplint.http import HttpResponse
from amplint.replay import FixtureClient, Interaction

FIXTURES = Path(__file__).parent / "fixtures"
PAGE_URL = "https://example.com/page.html"
NO_VALIDATOR = LintConfig(validator_command=("amphtml-validator-not-installed",))


def image_bytes(width, height, image_format="PNG"):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 40, 40)).save(buffer, format=image_format)
    return buffer.getvalue()


def respond(url, status=200, headers=None, body=b"", method="GET", final_url=None):
    if isinstance(body, str):
        body = body.encode("utf-8")
    return Interaction(
        method=method,
        url=url,
        response=HttpResponse(url=final_url or url, status=status, headers=headers or {}, body=body),
    )


@pytest.fixture
def make_context():
    """Build a ``Context`` for ``html`` whose HTTP client replays ``interactions``."""

    def factory(html, interactions=(), url=PAGE_URL, config=NO_VALIDATOR, http=None):
        return Context.from_body(
            url,
            html,
            http=http or FixtureClient(interactions),
            headers={"user-agent": "amplint-tests"},
            config=config,
        )

    return factory
