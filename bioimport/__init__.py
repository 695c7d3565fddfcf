import os
from .utils import find_java_home
from loguru import logger

if not os.environ.get("JAVA_HOME"):
    java_home = find_java_home()
    if java_home:
        os.environ["JAVA_HOME"] = java_home
        logger.debug(f"Auto-detected JAVA_HOME: {java_home}")
    else:
        logger.debug(
            "Could not auto-detect Java installation. bioio-bioformats may not work."
        )

from .exceptions import BioImportError, DecodeFailure, MissingSource, UnsupportedFormat  # noqa: E402
from .importer import Importer  # noqa: E402
from .models import ImportOptions, ImportResult  # noqa: E402

__version__ = "0.1.0"

__all__ = [
    "Importer",
    "ImportOptions",
    "ImportResult",
    "BioImportError",
    "MissingSource",
    "UnsupportedFormat",
    "DecodeFailure",
]
