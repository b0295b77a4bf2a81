from seednode.util.log import init_logging
init_logging()

import sys

from seednode.screen.cli import main


if __name__ == '__main__':
    sys.exit(main())
