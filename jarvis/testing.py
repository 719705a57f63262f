import http.server
import os
import threading
import typing as t
import urllib.parse

import httpx

from jarvis.config import Config


class ConfigIsolation:
    """
    This class is a context manager that can be used to properly isolate the config singleton
    during testing. The problem is that the config class is a global singleton and therefore the
    constructor of the class always returns the same object. For any tests that in some way modify
    that config object, this can lead to side effects in other tests. This context manager can be
    used to isolate the config object for a specific test like this:

    .. code-block:: python

        with ConfigIsolation(environ={"JARVIS_PANEL_KEY": "secret"}) as config:
            # do something with the config object

        # afterwards the config will be restored to the previous state

    On enter, the given ``environ`` values are put into ``os.environ`` and the config is reloaded
    from the environment. On exit, both the environment and the config object are restored.
    """

    def __init__(self, environ: dict[str, str] | None = None):
        self.config = Config()
        self.environ = environ or {}
        self.config_state: dict | None = None
        self.original_environ: dict[str, str | None] = {}

    def __enter__(self) -> Config:
        self.config_state = self.config.export_state()
        for key, value in self.environ.items():
            self.original_environ[key] = os.environ.get(key)
            os.environ[key] = value

        self.config.reset_state()
        return self.config

    def __exit__(self, *args):
        for key, value in self.original_environ.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

        self.config.import_state(self.config_state)


class RecordingTransport(httpx.MockTransport):
    """
    A ``httpx.MockTransport`` which answers every request with the same ``body`` (or with the result
    of ``handler`` if one is given) and records the decoded form parameters of every request in the
    ``requests`` list as ``(path, params)`` tuples. The path includes the query string.

    .. code-block:: python

        transport = RecordingTransport('{"status": true, "msg": "ok"}')
        client = PanelClient("http://panel", "secret", transport=transport)
        client.request("/site?action=AddSite", {"path": "/www"})
        path, params = transport.requests[0]
    """

    def __init__(
        self,
        body: str = "",
        status_code: int = 200,
        handler: t.Callable[[str, dict[str, str]], str] | None = None,
    ):
        self.body = body
        self.status_code = status_code
        self.body_handler = handler
        self.requests: list[tuple[str, dict[str, str]]] = []
        super().__init__(self.respond)

    def respond(self, request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode("ascii")
        params = dict(urllib.parse.parse_qsl(request.content.decode("utf-8"), keep_blank_values=True))
        self.requests.append((path, params))

        body = self.body
        if self.body_handler is not None:
            body = self.body_handler(path, params)

        return httpx.Response(self.status_code, text=body)


class PanelServer:
    """
    A context manager which runs a minimal HTTP server on a random local port in a background
    thread. Every POST is answered with ``status_code`` and ``body``; the raw request bodies are
    collected in ``bodies``.

    .. code-block:: python

        with PanelServer(body='{"status":"1","msg":"ok"}') as server:
            text = post(server.url + "/system?action=GetNetWork", {})
    """

    def __init__(self, body: str = "", status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.bodies: list[str] = []
        self.server: http.server.HTTPServer | None = None
        self.thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}"

    def __enter__(self):
        panel = self

        class Handler(http.server.BaseHTTPRequestHandler):

            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                panel.bodies.append(self.rfile.read(length).decode("utf-8"))

                content = panel.body.encode("utf-8")
                self.send_response(panel.status_code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(content)))
                self.end_headers()
                self.wfile.write(content)

            def log_message(self, format, *args):
                pass

        self.server = http.server.HTTPServer(("127.0.0.1", 0), Handler)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        return self

    def __exit__(self, *args):
        self.server.shutdown()
        self.server.server_close()
        self.thread.join()
