"""
erris/__main__.py
=================

Entry point for ``python -m erris``.  See :mod:`erris.main`.
"""

import sys

from erris.main import main

if __name__ == "__main__":
    sys.exit(main())
