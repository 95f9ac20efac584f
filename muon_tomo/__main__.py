import sys

from muon_tomo.run.cli import main

sys.exit(main())
