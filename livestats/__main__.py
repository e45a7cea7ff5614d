import sys

from livestats.cli import main

sys.exit(main())
