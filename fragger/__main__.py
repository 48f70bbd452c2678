import sys

from .client.client import main

sys.exit(main())
