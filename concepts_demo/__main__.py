import sys

from concepts_demo.main import main

sys.exit(main())
