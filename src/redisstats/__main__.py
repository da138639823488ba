import sys

from redisstats.cli import main

sys.exit(main())
