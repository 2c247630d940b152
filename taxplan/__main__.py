import sys

from taxplan.main import main

sys.exit(main())
