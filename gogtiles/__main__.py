import sys

from gogtiles.cli import main

sys.exit(main())
