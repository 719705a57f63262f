import os
import sys
import pathlib
import logging

PATH = pathlib.Path(__file__).parent.absolute()
ASSETS_PATH = os.path.join(PATH, 'assets')

DO_LOGGING = True
LOG = logging.Logger('test')
if DO_LOGGING:
    LOG.addHandler(logging.StreamHandler(sys.stdout))
else:
    LOG.addHandler(logging.NullHandler())


NULL_LOGGER = logging.Logger('NULL')
NULL_LOGGER.addHandler(logging.NullHandler())


def read_asset(name: str) -> str:
    """
    Returns the content of the file ``name`` in the assets folder. The assets are captured outputs
    of the command line tools which are parsed by jarvis.
    """
    with open(os.path.join(ASSETS_PATH, name), encoding='utf-8') as file:
        return file.read()
