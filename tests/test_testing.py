import os

import httpx

from jarvis.config import Config
from jarvis.testing import ConfigIsolation, RecordingTransport


def test_recording_transport_answers_with_body():
    transport = RecordingTransport(body='{"status": true}')
    with httpx.Client(transport=transport) as client:
        response = client.post("http://panel/site?action=DeleteSite", data={"id": "3"})

    assert response.text == '{"status": true}'
    assert transport.requests == [("/site?action=DeleteSite", {"id": "3"})]


def test_recording_transport_uses_handler():
    """
    A handler given to the transport decides the body of every response based on the path and the
    form parameters of the request.
    """
    def handler(path: str, params: dict) -> str:
        return f"{path} {params.get('name', '')}"

    transport = RecordingTransport(body="unused", handler=handler)
    with httpx.Client(transport=transport) as client:
        first = client.post("http://panel/crontab?action=GetCrontab", data={})
        second = client.post("http://panel/crontab?action=DelCrontab", data={"name": "backup"})

    assert first.text == "/crontab?action=GetCrontab "
    assert second.text == "/crontab?action=DelCrontab backup"
    assert len(transport.requests) == 2


def test_recording_transport_status_code():
    transport = RecordingTransport(body="error", status_code=500)
    with httpx.Client(transport=transport) as client:
        response = client.post("http://panel/x", data={})

    assert response.status_code == 500
    assert response.text == "error"


def test_config_isolation_without_environ():
    config = Config()
    with ConfigIsolation() as isolated:
        assert isolated is config

    isolation = ConfigIsolation()
    assert isolation.environ == {}
    assert ConfigIsolation().environ is not isolation.environ


def test_config_isolation_restores_environ(monkeypatch):
    monkeypatch.delenv("JARVIS_PANEL_KEY", raising=False)
    with ConfigIsolation(environ={"JARVIS_PANEL_KEY": "secret"}):
        assert os.environ["JARVIS_PANEL_KEY"] == "secret"

    assert "JARVIS_PANEL_KEY" not in os.environ
