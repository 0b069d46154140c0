"""Asterisk fax spooler.

Turns queued outgoing fax jobs into Asterisk call files.
"""

__version__ = "0.3.0"
