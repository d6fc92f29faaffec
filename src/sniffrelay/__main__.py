import sys

from sniffrelay.cli import main

sys.exit(main())
