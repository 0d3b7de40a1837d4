"""Runs seqcalc programs from .sc files, or statements typed in command-line mode. Also uses the error handling context
manager. Called from the seqcalc console script.
"""

import argparse
import logging
import sys

from seqcalc.lang.error import ErrorHandler
from seqcalc.lang.session import Session
from seqcalc.lang.shell import Shell

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def main(argv=None):
    """Runs seqcalc interpreter. Called from seqcalc console script."""
    assert sys.version_info >= (3, 8), "seqcalc cannot be run with python < 3.8"

    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="seqcalc")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--log-level", help="logging level (default: WARNING)", default="WARNING",
                            choices=LOG_LEVELS)
        args = parser.parse_args(argv)

        logging.basicConfig(level=args.log_level)

        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)
            sess.run(sess.read())

            for output in sess.results:
                print(output)

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()


if __name__ == "__main__":
    main()
