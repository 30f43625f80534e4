"""Allow `python -m ko`, which the detached cleanup process relies on."""

from ko.cli import app

app()
