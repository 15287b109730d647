"""Runs the pale interpreter on a file, on a command-line argument, or in interactive mode. Also uses the error handling
context manager. Called from the pale console script.
"""

import argparse

from pale.lang.error import ErrorHandler
from pale.lang.session import Session
from pale.lang.shell import Shell


def main(argv=None):
    """Runs pale interpreter. Called from pale console script."""
    parser = argparse.ArgumentParser(prog="pale")
    parser.add_argument("input", help="file to interpret and run (if empty, goes to interactive mode)", nargs="?")
    parser.add_argument("-c", "--command", action="store_true", help="interpret input as source instead of a path")
    parser.add_argument("-d", "--dump", action="store_true", help="print tokens and statement trees before running")
    args = parser.parse_args(argv)

    if args.command and args.input is None:
        parser.error("a command must be provided with --command")

    with ErrorHandler() as error_handler:
        if args.command:
            sess = Session(error_handler, Session.CMD_FILE, cmd_line=False, dump=args.dump)
            sess.add(args.input)
        elif args.input is not None:
            sess = Session(error_handler, args.input, cmd_line=False, dump=args.dump)
        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, dump=args.dump)).cmdloop()
            return

        sess.run()
        for result in sess.results:
            print(result)


if __name__ == "__main__":
    main()
