import sys

from cursor_meter.app import main

sys.exit(main())
