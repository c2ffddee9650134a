"""cmd-supervisor entry point.

Supports: python -m cmd_supervisor
"""

from .app import main

if __name__ == "__main__":
    main()
