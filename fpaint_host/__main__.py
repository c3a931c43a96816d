import sys

from fpaint_host.app import main

sys.exit(main())
