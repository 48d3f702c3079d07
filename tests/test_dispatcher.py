import asyncio
import base64
import json

import httpx
import pytest

from studio.dispatcher import CancellationToken, GenerationDispatcher, save_image
from studio.session import Session, SessionManager

from conftest import RESULT_URL, Recorder

IMAGE = "data:image/png;base64,AAA="


def _dispatcher(reply, sessions=None):
    recorder = Recorder(reply)
    dispatcher = GenerationDispatcher(base_url="http://proxy.test", sessions=sessions, transport=recorder.transport)
    return dispatcher, recorder


def test_success_returns_image_url():
    dispatcher, recorder = _dispatcher(lambda req: httpx.Response(200, json={"imageUrl": RESULT_URL}))

    result = asyncio.run(dispatcher.dispatch([IMAGE], "Apply warm sunset color grading"))

    assert result.ok
    assert result.image_url == RESULT_URL
    assert len(recorder.requests) == 1
    sent = recorder.requests[0]
    assert sent.url == "http://proxy.test/api/generate-image"
    assert json.loads(sent.content) == {"images": [IMAGE], "prompt": "Apply warm sunset color grading"}
    assert "authorization" not in sent.headers


@pytest.mark.parametrize("prompt", ["", "   "])
def test_empty_prompt_never_calls_proxy(prompt):
    dispatcher, recorder = _dispatcher(lambda req: httpx.Response(200, json={"imageUrl": RESULT_URL}))

    result = asyncio.run(dispatcher.dispatch([IMAGE], prompt))

    assert not result.ok
    assert result.error
    assert recorder.requests == []


@pytest.mark.parametrize("images", [[], [IMAGE] * 5])
def test_image_count_out_of_range_never_calls_proxy(images):
    dispatcher, recorder = _dispatcher(lambda req: httpx.Response(200, json={"imageUrl": RESULT_URL}))

    result = asyncio.run(dispatcher.dispatch(images, "prompt"))

    assert not result.ok
    assert recorder.requests == []


def test_http_500_becomes_message_with_status():
    dispatcher, _ = _dispatcher(lambda req: httpx.Response(500, json={"error": "AI gateway error (500): boom"}))

    result = asyncio.run(dispatcher.dispatch([IMAGE], "prompt"))

    assert not result.ok
    assert "500" in result.error
    assert "boom" in result.error


def test_non_json_error_body():
    dispatcher, _ = _dispatcher(lambda req: httpx.Response(503, text="Service Unavailable"))

    result = asyncio.run(dispatcher.dispatch([IMAGE], "prompt"))

    assert "503" in result.error


def test_success_without_image_url_is_an_error():
    dispatcher, _ = _dispatcher(lambda req: httpx.Response(200, json={"something": "else"}))

    result = asyncio.run(dispatcher.dispatch([IMAGE], "prompt"))

    assert not result.ok
    assert result.error == "No image URL in response"


def test_transport_error_is_reported_not_raised():
    def reply(req):
        raise httpx.ConnectError("connection refused", request=req)

    dispatcher, _ = _dispatcher(reply)

    result = asyncio.run(dispatcher.dispatch([IMAGE], "prompt"))

    assert not result.ok
    assert "connection refused" in result.error


def test_signed_in_requests_carry_bearer_token():
    sessions = SessionManager(url="http://backend.test", anon_key="anon")
    sessions.set_session(Session(access_token="jwt-123", user_id="u1"))
    dispatcher, recorder = _dispatcher(lambda req: httpx.Response(200, json={"imageUrl": RESULT_URL}), sessions)

    asyncio.run(dispatcher.dispatch([IMAGE], "prompt"))

    assert recorder.requests[0].headers["authorization"] == "Bearer jwt-123"


def test_cancelled_request_result_is_discarded():
    token = CancellationToken()

    def reply(req):
        token.cancel()
        return httpx.Response(200, json={"imageUrl": RESULT_URL})

    dispatcher, _ = _dispatcher(reply)

    result = asyncio.run(dispatcher.dispatch([IMAGE], "prompt", token=token))

    assert result.cancelled
    assert not result.ok
    assert result.image_url is None


def test_save_image_decodes_data_url(tmp_path):
    url = "data:image/png;base64," + base64.b64encode(b"pixels").decode()

    out = asyncio.run(save_image(url, tmp_path / "out" / "result.png"))

    assert out.read_bytes() == b"pixels"


def test_save_image_downloads_remote_url(tmp_path):
    recorder = Recorder(lambda req: httpx.Response(200, content=b"remote-pixels"))

    out = asyncio.run(save_image(RESULT_URL, tmp_path / "result.png", transport=recorder.transport))

    assert out.read_bytes() == b"remote-pixels"
    assert str(recorder.requests[0].url) == RESULT_URL


def test_save_image_download_failure(tmp_path):
    recorder = Recorder(lambda req: httpx.Response(404))

    with pytest.raises(RuntimeError):
        asyncio.run(save_image(RESULT_URL, tmp_path / "result.png", transport=recorder.transport))


def test_save_image_rejects_bad_data_url(tmp_path):
    with pytest.raises(ValueError):
        asyncio.run(save_image("data:image/png,notbase64", tmp_path / "x.png"))
