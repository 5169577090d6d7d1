"""Remote-browser automation for the Reboot Motion dashboard."""

__version__ = "0.1.0"
