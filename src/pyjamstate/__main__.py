import sys

from pyjamstate.cli import main

sys.exit(main())
