import os

from jarvis.util import Singleton

# Maps the keys of the config data dict to the environment variables which may override the
# corresponding default value and the type the value is converted into.
ENVIRONMENT_DEFAULTS: dict[str, tuple[str, type, object]] = {
    "panel_host": ("JARVIS_PANEL_HOST", str, "http://127.0.0.1:8888"),
    "panel_key": ("JARVIS_PANEL_KEY", str, ""),
    "request_timeout": ("JARVIS_REQUEST_TIMEOUT", float, 20.0),
    "mysql_host": ("JARVIS_MYSQL_HOST", str, "127.0.0.1"),
    "mysql_port": ("JARVIS_MYSQL_PORT", int, 3306),
    "mysql_username": ("JARVIS_MYSQL_USERNAME", str, "root"),
    "mysql_password": ("JARVIS_MYSQL_PASSWORD", str, "root"),
}


class Config(metaclass=Singleton):
    """
    The config singleton. This instance is globally acessible and stores the default values that
    are used by the command line interface, for example the address of the hosting panel or the
    credentials of the local MySQL server.

    To access the config instance simply call the class constructor like this. Due to the singleton
    metaclass, this will actually always return the *same* instance.

    .. code-block:: python

        config = Config()
        host = config.get("panel_host")

    The values are read from the environment (``JARVIS_*`` variables) when the config is first
    constructed. Options given on the command line always take precedence over these defaults.
    """

    def __init__(self):
        self.data: dict[str, "any"] = {}
        self.load_environment()

    def load_environment(self) -> None:
        """
        Populates the ``data`` dict with the default values, overridden by the environment variables
        listed in ``ENVIRONMENT_DEFAULTS``. A value that cannot be converted into the required type
        is ignored in favor of the default.
        """
        for key, (variable, type_, default) in ENVIRONMENT_DEFAULTS.items():
            value = default
            if variable in os.environ:
                try:
                    value = type_(os.environ[variable])
                except ValueError:
                    value = default

            self.data[key] = value

    def get(self, key: str, default: "any" = None) -> "any":
        return self.data.get(key, default)

    # ~ testability utils
    # The following methods allow the current state of the config object to be exported, imported and
    # reset. This can be used to store the state of the config object before a test is run, reset it to
    # a blank state and then restore it after the test.

    def export_state(self) -> dict:
        """
        Returns a dictionary that represents the current state of the config object.
        """
        return {"data": dict(self.data)}

    def import_state(self, state: dict) -> None:
        """
        Given a previously exported config ``state`` dict, this method will restore the internal
        variables of the config object to the state defined there.
        """
        self.data = state["data"]

    def reset_state(self) -> None:
        """
        Resets the data dict to the defaults given by the current environment.
        """
        self.data = {}
        self.load_environment()
