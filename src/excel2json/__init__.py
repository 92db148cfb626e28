"""excel2json — Convert a spreadsheet sheet into JSON records."""

__version__ = "0.1.0"

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xlsm", ".xltx", ".xltm", ".xls")

DEFAULT_INDENT = 2
