"""
Utility functions for the CLI.
"""


def mask_secret(secret: str, visible: int = 0) -> str:
    """
    Returns a masked version of the given ``secret`` string which can be shown in the terminal. Only
    the first ``visible`` characters are kept, the rest is replaced by asterisks.

    :param secret: The string to be masked
    :param visible: The number of leading characters which remain visible

    :return: The masked string
    """
    if not secret:
        return ""

    visible = max(0, min(visible, len(secret) - 1))
    return secret[:visible] + "*" * (len(secret) - visible)


def read_content(file_path: str, content: str) -> str:
    """
    Returns the content of the file ``file_path`` if a path is given and the ``content`` string
    otherwise. The file takes precedence.

    :raises OSError: if the file cannot be read
    """
    if file_path:
        with open(file_path, encoding="utf-8") as file:
            return file.read()

    return content
