import logging
import typing as t

import httpx

from jarvis.panel.signing import sign_request
from jarvis.util import NULL_LOGGER

# Client side timeout in seconds for a single request to the panel.
REQUEST_TIMEOUT: float = 20.0


class PanelError(Exception):
    """
    Raised when the panel reports an error or a request to the panel cannot be completed.
    """


class PanelTransportError(PanelError):
    """
    Raised when the request did not produce any HTTP response: the connection was refused, timed
    out or the host name could not be resolved.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"request to {url} failed: {reason}")
        self.url = url
        self.reason = reason


def post(
    url: str,
    data: t.Mapping[str, str],
    timeout: float = REQUEST_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """
    Sends ``data`` as an urlencoded form POST to the given absolute ``url`` and returns the response
    body as a string. The body is returned for every HTTP status code, it is up to the caller to
    interpret it.

    :param url: The absolute url of the endpoint including any query string.
    :param data: The form parameters.
    :param timeout: The timeout in seconds.
    :param transport: An optional httpx transport, mainly used to substitute a MockTransport.

    :raises PanelTransportError: if no response could be received at all.

    :returns: The response body.
    """
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(
                url,
                data=dict(data),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.TransportError as exc:
        raise PanelTransportError(url, str(exc) or exc.__class__.__name__) from exc

    return response.text


class PanelClient:
    """
    Facade for the panel API which stores the panel address and key so that the individual endpoint
    helpers only need to provide the action path and the parameters of their request.

    .. code-block:: python

        client = PanelClient("http://127.0.0.1:8888", key="...")
        body = client.request("/system?action=GetSystemTotal")

    :param host: The base url of the panel, e.g. "http://127.0.0.1:8888".
    :param key: The shared API key of the panel.
    :param timeout: The timeout for each request in seconds.
    :param transport: Optional httpx transport which is passed on to every request.
    :param logger: The logger to use. The key and the token are never logged.
    """

    def __init__(
        self,
        host: str,
        key: str,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger = NULL_LOGGER,
    ):
        self.host = host
        self.key = key
        self.timeout = timeout
        self.transport = transport
        self.logger = logger

    def url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.host.rstrip("/") + path

    def request(self, path: str, params: t.Optional[t.Mapping[str, str]] = None) -> str:
        url = self.url(path)
        signed = sign_request(self.key, params)
        self.logger.debug(f"POST {url} params={list((params or {}).keys())}")

        body = post(url, signed, timeout=self.timeout, transport=self.transport)
        self.logger.debug(f"received {len(body)} characters from {url}")
        return body
