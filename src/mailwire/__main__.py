# =============================================================================
# mailwire Entry Point for `python -m mailwire`
# =============================================================================
# This module allows mailwire to be run as a Python module:
#
#   python -m mailwire render message.toml
#
# This is equivalent to running the 'mailwire' command after installation.
# =============================================================================

import sys

from mailwire.app import main

if __name__ == "__main__":
    sys.exit(main())
