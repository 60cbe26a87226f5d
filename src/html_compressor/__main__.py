import sys

from html_compressor.cli import main

sys.exit(main())
