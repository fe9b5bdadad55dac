import asyncio

from amplint.probe import ImageSize
from amplint.result import pass_
from amplint.rules.media import (
    AmpImgAmpPixelPreferred,
    AmpImgHeightWidthIsOk,
    AmpVideoIsSmall,
    AmpVideoIsSpecifiedByAttribute,
    compare_dimensions,
)
from amplint.status import Status

from conftest import image_bytes, respond

WIDE_PNG = "https://example.com/img/wide.png"
VIDEO = "https://example.com/media/clip.mp4"


def run(rule, context):
    return asyncio.run(rule.run(context))


def test_img_dimensions_match(make_context):
    html = '<amp-img src="/img/wide.png" width="400" height="200"></amp-img>'
    context = make_context(html, [respond(WIDE_PNG, body=image_bytes(400, 200))])

    assert run(AmpImgHeightWidthIsOk(), context) == []


def test_img_ratio_mismatch(make_context):
    html = '<amp-img src="/img/wide.png" width="100" height="100"></amp-img>'
    context = make_context(html, [respond(WIDE_PNG, body=image_bytes(400, 200))])

    (result,) = run(AmpImgHeightWidthIsOk(), context)

    assert result.status is Status.FAIL
    assert "actual ratio [400/200 = 2.0]" in result.message


def test_img_layouts(make_context):
    html = """
    <amp-img src="/img/wide.png" width="10" height="90" layout="fill"></amp-img>
    <amp-img src="/img/wide.png" width="40" height="20" layout="responsive"></amp-img>
    <amp-img src="/img/wide.png" width="1000px" height="500px"></amp-img>
    """
    context = make_context(html, [respond(WIDE_PNG, body=image_bytes(400, 200))])

    (result,) = run(AmpImgHeightWidthIsOk(), context)

    assert result.status is Status.WARN
    assert "much smaller than specified [1000x500]" in result.message


def test_img_unrecognized_format(make_context):
    html = '<amp-img src="/img/wide.png" width="400" height="200"></amp-img>'
    context = make_context(html, [respond(WIDE_PNG, body="<html>not an image</html>")])

    (result,) = run(AmpImgHeightWidthIsOk(), context)

    assert result.message == "[/img/wide.png] unrecognized file format"


def test_compare_dimensions_flags_oversized_images():
    result = compare_dimensions("a.png", ImageSize(2000, 1000, "image/png"), (200, 100))

    assert result.status is Status.WARN
    assert "much larger" in result.message
    assert compare_dimensions("a.png", ImageSize(2000, 1000, "image/png"), (200, 100), ratio_only=True) == pass_()


def test_small_video_passes(make_context):
    html = f'<amp-video><source type="video/mp4" src="{VIDEO}"></amp-video>'
    context = make_context(html, [respond(VIDEO, method="HEAD", headers={"content-length": "1200000"})])

    assert run(AmpVideoIsSmall(), context) == [pass_()]


def test_large_video_fails(make_context):
    html = f'<amp-video><source type="video/mp4" src="{VIDEO}"></amp-video>'
    context = make_context(html, [respond(VIDEO, method="HEAD", headers={"content-length": "5000000"})])

    (result,) = run(AmpVideoIsSmall(), context)

    assert result.message == f"videos over 4MB: [{VIDEO}]"


def test_unreachable_video_fails(make_context):
    html = f'<amp-video><source type="video/mp4" src="{VIDEO}"></amp-video>'
    context = make_context(html, [respond(VIDEO, method="HEAD", status=404)])

    (result,) = run(AmpVideoIsSmall(), context)

    assert result.message == f"couldn't retrieve video(s): [{VIDEO}]"


def test_video_src_attribute_warns(make_context):
    assert run(AmpVideoIsSpecifiedByAttribute(), make_context(f'<amp-video src="{VIDEO}"></amp-video>'))[0].status is Status.WARN
    assert run(AmpVideoIsSpecifiedByAttribute(), make_context("<p></p>")) == [pass_()]


def test_tracking_pixel_suggests_amp_pixel(make_context):
    html = """
    <amp-img src="/t.gif" width="1" height="1"></amp-img>
    <amp-img src="/dot.png" width="1" height="1" layout="responsive"></amp-img>
    """

    results = run(AmpImgAmpPixelPreferred(), make_context(html))

    assert len(results) == 1
    assert results[0].status is Status.WARN
    assert "/t.gif" in results[0].message
