import sys

from francetvpy.cli import main

sys.exit(main())
