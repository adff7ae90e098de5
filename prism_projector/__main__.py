import sys

from prism_projector.cli import main

sys.exit(main())
