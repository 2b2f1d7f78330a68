import sys

from speakerkit.cli import main

sys.exit(main())
