import sys

from sitesync.cli import main

sys.exit(main())
