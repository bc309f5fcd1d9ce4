from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

from ballot.engine import BallotEngine, LogEntry
from ballot.settings import Settings

__version__: str
try:
    __version__ = _version("ballot-engine")
except PackageNotFoundError:
    from ballot.version import version

    __version__ = version
