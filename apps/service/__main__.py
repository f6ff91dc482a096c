import sys

from apps.service.main import main

sys.exit(main())
