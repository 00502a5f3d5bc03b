import sys

from feedterm.cli import main

sys.exit(main())
