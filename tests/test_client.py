import socket
import urllib.parse

import httpx
import pytest

from jarvis.panel.client import PanelClient, PanelError, PanelTransportError, post
from jarvis.panel.signing import compute_token
from jarvis.testing import PanelServer, RecordingTransport

from .util import LOG


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestPost:

    def test_returns_body_verbatim_from_local_server(self):
        """
        The dispatcher returns the exact body of the response of a real HTTP server.
        """
        body = '{"status":"1","msg":"ok"}'
        with PanelServer(body=body) as server:
            text = post(server.url + "/system?action=GetNetWork", {"a": "1", "b": "x y"})

        LOG.info(text)
        assert text == body
        assert len(server.bodies) == 1
        assert urllib.parse.parse_qs(server.bodies[0]) == {"a": ["1"], "b": ["x y"]}

    def test_returns_body_for_error_status_codes(self):
        with PanelServer(body="internal error", status_code=500) as server:
            text = post(server.url + "/x", {})

        assert text == "internal error"

    def test_unreachable_host_raises(self):
        """
        A request to a port where nobody listens must raise an error instead of returning an
        empty body.
        """
        url = f"http://127.0.0.1:{unused_port()}/crontab?action=GetCrontab"
        with pytest.raises(PanelTransportError) as info:
            post(url, {"id": "1"}, timeout=2.0)

        assert info.value.url == url
        assert isinstance(info.value, PanelError)

    def test_timeout_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(PanelTransportError):
            post("http://panel/x", {}, transport=httpx.MockTransport(handler))

    def test_sends_form_content_type(self):
        headers = {}

        def handler(request: httpx.Request) -> httpx.Response:
            headers.update(request.headers)
            return httpx.Response(200, text="")

        post("http://panel/x", {"a": "1"}, transport=httpx.MockTransport(handler))
        assert headers["content-type"] == "application/x-www-form-urlencoded"


class TestPanelClient:

    def test_url_joins_host_and_path(self):
        client = PanelClient("http://127.0.0.1:8888/", "secret")
        assert client.url("/site?action=AddSite") == "http://127.0.0.1:8888/site?action=AddSite"
        assert client.url("data?action=getData") == "http://127.0.0.1:8888/data?action=getData"

    def test_request_is_signed(self):
        transport = RecordingTransport(body="[]")
        client = PanelClient("http://panel", "secret", transport=transport)

        body = client.request("/crontab?action=DelCrontab", {"id": "7"})
        assert body == "[]"

        path, params = transport.requests[0]
        assert path == "/crontab?action=DelCrontab"
        assert params["id"] == "7"
        timestamp = int(params["request_time"])
        assert params["request_token"] == compute_token("secret", timestamp)

    def test_request_never_sends_the_key(self):
        transport = RecordingTransport(body="")
        client = PanelClient("http://panel", "very-secret-key", transport=transport)
        client.request("/system?action=GetSystemTotal")

        _, params = transport.requests[0]
        assert "very-secret-key" not in params.values()
        assert set(params.keys()) == {"request_time", "request_token"}
