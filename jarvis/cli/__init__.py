"""
Jarvis CLI package.

This package provides the command-line interface of jarvis::

    jarvis/cli/
    ├── __init__.py              # This file: public API exports
    ├── main.py                  # CLI class and the cli entry point
    ├── display.py               # Rich display components
    ├── utils.py                 # Helper functions
    └── commands/
        ├── __init__.py         # Mixin exports
        ├── panel.py            # PanelCommandsMixin
        ├── database.py         # DatabaseCommandsMixin
        ├── system.py           # SystemCommandsMixin
        └── xcode.py            # XcodeCommandsMixin

Command Groups
==============

**Panel Commands** (commands/panel.py):
    - ``jarvis panel http`` - Send a signed request to any endpoint
    - ``jarvis panel site show|types|php|create|delete|conf`` - Manage the sites
    - ``jarvis panel crontab get|create|delete`` - Manage the crontab jobs
    - ``jarvis panel database create`` - Create a database through the panel

**Database Commands** (commands/database.py):
    - ``jarvis database create`` - Create a database on a MySQL server
    - ``jarvis database show`` - List the databases

**System Commands** (commands/system.py):
    - ``jarvis system info|resource|process|network|disk``

**Xcode Commands** (commands/xcode.py):
    - ``jarvis xcode info|version|bump|build|codesign|package|setup``

The entry point in ``pyproject.toml`` resolves to the ``cli()`` function defined at the bottom of
``main.py``, which is re-exported here::

    from jarvis.cli import CLI, cli
"""

from jarvis.cli.main import CLI, cli

__all__ = [
    "CLI",
    "cli",
]
