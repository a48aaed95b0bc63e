"""Log formatting for serialtok"""

import logging
from socket import gethostname


class SerialtokFormatter(logging.Formatter):
    """Formatter that additionally offers :code:`%(hostname)s` in the format string.

    Useful if the logs of several machines with serial devices are collected in one place.
    """

    hostname = gethostname()

    def format(self, record):
        record.hostname = self.hostname
        return super().format(record)
