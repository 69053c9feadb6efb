"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Number formatting for emitted text (numbers)
    - Atomic I/O and YAML loading (fs)
    - Logging setup for entrypoints (logging_config)

No module in utils/ may import from upper layers (types, cuts, program, etc.).

Convenience imports:
    from cnccoder.utils import fs, numbers
    from cnccoder.utils.logging_config import setup_logging, log_context
"""

from . import fs
from . import logging_config
from . import numbers
