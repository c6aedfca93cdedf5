__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'commandflow'
__author__ = 'commandflow contributors'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .commands import *
from .context import *
from .faults import *
from .manager import *
from .parts import *
from .stack import *
from .tokenizers import *
from .usage import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of each module
__all__ += commands.__all__  # type: ignore[attr-defined]
__all__ += context.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
__all__ += manager.__all__  # type: ignore[attr-defined]
__all__ += parts.__all__  # type: ignore[attr-defined]
__all__ += stack.__all__  # type: ignore[attr-defined]
__all__ += tokenizers.__all__  # type: ignore[attr-defined]
__all__ += usage.__all__  # type: ignore[attr-defined]
