"""Desktop status widget for Cursor plan and on-demand usage."""

__version__ = "0.3.0"
