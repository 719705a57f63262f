"""
Request signing for the panel API.

The panel never receives the key itself. Instead every request carries the current unix
timestamp as ``request_time`` and the token ``md5(request_time + md5(key))`` as ``request_token``,
both as lowercase hex digests. MD5 is what the panel expects, it is not a choice made here.
"""

import hashlib
import time
import typing as t


def md5_hex(string: str) -> str:
    return hashlib.md5(string.encode("utf-8")).hexdigest()


def compute_token(key: str, timestamp: int) -> str:
    """
    Returns the request token for the given panel ``key`` at the given unix ``timestamp``.
    For the same key and timestamp the token is always the same.
    """
    return md5_hex(str(timestamp) + md5_hex(key))


def sign_request(
    key: str,
    params: t.Optional[t.Mapping[str, str]] = None,
    timestamp: t.Optional[int] = None,
) -> dict[str, str]:
    """
    Returns a new parameter dict which contains all the entries of ``params`` (in the same order)
    plus the two signing entries ``request_time`` and ``request_token``. If these keys already
    exist in ``params``, their values are overwritten in place. The given mapping is not modified.

    :param key: The shared panel key.
    :param params: The form parameters of the request. May be None for requests without parameters.
    :param timestamp: The unix timestamp in seconds. Defaults to the current time.

    :returns: The signed parameter dict.
    """
    if timestamp is None:
        timestamp = int(time.time())

    signed: dict[str, str] = dict(params or {})
    signed["request_time"] = str(timestamp)
    signed["request_token"] = compute_token(key, timestamp)
    return signed
