"""Allow ``python -m excel2json``."""

from excel2json.cli import app

app()
