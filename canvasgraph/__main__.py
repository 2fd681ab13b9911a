import sys

from canvasgraph.cli import main

sys.exit(main())
