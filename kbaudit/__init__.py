"""kbaudit: nightly health audit for a managed knowledge-base repository."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kbaudit")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
