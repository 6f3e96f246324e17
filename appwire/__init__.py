# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
# make version accessible as 'appwire.__version__'
from appwire._version import __version__  # noqa: F401

# Initialize a silent 'appwire' logger
# http://docs.python-guide.org/en/latest/writing/logging/#logging-in-a-library
# https://docs.python.org/3/howto/logging.html#configuring-logging-for-a-library
import logging

_base_logger = logging.getLogger(__name__)
_base_logger.addHandler(logging.NullHandler())
_base_logger.propagate = False
_base_logger.setLevel(logging.INFO)
