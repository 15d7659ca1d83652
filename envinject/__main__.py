"""Allow running as ``python -m envinject``."""

import sys

from envinject.cli.main import main


sys.exit(main())
