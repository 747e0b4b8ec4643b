"""
Import statements consumed by a file.

Transforming first elides import bindings the file never references, so the
import lines that survive are the ones the code actually uses.
"""

import logging
import re
from typing import List

from .config import settings
from .transform import transform as transform_code

logger = logging.getLogger(__name__)

IMPORT_LINE = re.compile(r"^\s*import.*from.*")
_CLOSE_FROM = re.compile(r"(\s*)\}(\s+from)")


def get_imports(code: str, transform: bool = True) -> List[str]:
    """
    Lines of code that are `import ... from ...` statements, in source order.

    Raises:
        TransformError: if transform is requested and code does not parse.
    """
    text = transform_code(code) if transform else code
    return [line for line in text.split("\n") if IMPORT_LINE.match(line)]


def _platform_import(module: str) -> re.Pattern:
    return re.compile(rf"import\s+(?:\w+\s*,\s*)?\{{[^}}]*\}}.*(?=['\"]{re.escape(module)}['\"]).*")


def get_used_imports(code: str, transform: bool = True) -> List[str]:
    """
    Imports the code uses, with the style helper added to the platform import.

    Only the first import with named bindings from the platform module is
    touched, and only when it does not already bind the helper.
    """
    text = transform_code(code) if transform else code
    imports = get_imports(text, transform=False)

    helper = settings.PLATFORM_STYLE_HELPER
    pattern = _platform_import(settings.PLATFORM_MODULE)
    for i, line in enumerate(imports):
        if not pattern.search(line):
            continue
        named = line[line.index("{") + 1:line.index("}")]
        bound = {part.split(" as ")[-1].strip() for part in named.split(",")}
        if helper in bound:
            logger.debug(f"{settings.PLATFORM_MODULE} import already binds {helper}")
        else:
            imports[i] = _CLOSE_FROM.sub(lambda m: f", {helper}{m.group(1)}}}{m.group(2)}", line, count=1)
        break
    return imports
