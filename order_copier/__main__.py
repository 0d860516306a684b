import sys

from order_copier.cli import main

sys.exit(main())
