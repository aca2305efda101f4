import sys

from workspaceAgent.cli import main

sys.exit(main())
