"""Discover class-definition documents inside an exploded package."""

import glob
import logging
import os
from typing import List, Sequence

from constants import Constants
from errors import ClassDefinitionMissing

logger = logging.getLogger(__name__)


def find_class_definitions(package_path: str) -> List[str]:
    """Return the package's ezcontentclass/class-*.xml files, sorted by filename.

    An empty result is logged, not treated as an error.
    """
    pattern = os.path.join(glob.escape(package_path), Constants.CLASS_DIR, Constants.CLASS_FILE_PATTERN)
    classes = sorted(glob.glob(pattern), key=lambda p: (os.path.basename(p), p))
    if not classes:
        logger.warning("Package contains no class definitions. %s", package_path)
    return classes


def transform_all(paths: Sequence[str], transformer) -> None:
    """Hand each class definition to ``transformer`` once, in order.

    Raises:
        ClassDefinitionMissing: If a path vanished since it was scanned.
    """
    for path in paths:
        if not os.path.isfile(path):
            raise ClassDefinitionMissing(path)
        logger.debug("Transforming class-definition %s", path)
        transformer.transform(path)
