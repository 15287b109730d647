"""Error handling for the pale language. LispErrors are the only errors that should be encountered during running: if
another type of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.
"""

import sys

from termcolor import colored


class LispErrors(Exception):
    """Accumulates located error messages, each with any number of notes. Builder methods return self, so a diagnostic
    can be built and raised in one expression:

        raise LispErrors().error(loc, "Unmatched closing parentheses!").note(None, "Delete it.")
    """

    def __init__(self):
        super().__init__()
        self.errs = []  # list of (location or None, message, [(location or None, note)])

    def error(self, loc, msg):
        """Adds a new primary error at loc."""
        self.errs.append((loc, msg, []))
        return self

    def note(self, loc, msg):
        """Attaches a note to the most recently added error. Does nothing if there are no errors yet."""
        if self.errs:
            self.errs[-1][2].append((loc, msg))
        return self

    def extend(self, other):
        """Merges the errors of other (e.g. from a sub-parse) into self."""
        self.errs.extend(other.errs)
        return self

    @staticmethod
    def _located(loc, msg, color):
        if loc is None:
            return msg
        loc = colored(str(loc), attrs=["bold"]) if color else str(loc)
        return f"{loc} - {msg}"

    def render(self, color=False):
        """Returns every error as '<location> - <message>', followed by its tab-indented notes."""
        lines = []
        for loc, msg, notes in self.errs:
            lines.append(LispErrors._located(loc, msg, color))
            for note_loc, note in notes:
                prefix = colored("NOTE:", ErrorHandler.NOTE, attrs=["bold"]) if color else "NOTE:"
                lines.append(f"\t{prefix} " + LispErrors._located(note_loc, note, color))
        return "\n".join(lines)

    def __bool__(self):
        return bool(self.errs)

    def __len__(self):
        return len(self.errs)

    def __str__(self):
        return self.render()


class InternalError(Exception):
    """Raised when an invariant of the interpreter is broken. Never caused by user input."""


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report pale errors instead."""
    ERROR = "red"
    NOTE = "cyan"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.traceback = {}

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called prior to Session run."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after a successful Session run."""
        self.traceback[path] = (None, None)

    def throw(self, error, internal=False):
        """Prints error (a LispErrors or plain message), along with the traceback of files that led up to it."""
        error_msg = ""
        lines = 0
        for file, (line, line_num) in self.traceback.items():
            if line:
                error_msg += f"  File '{file}', line {line_num}:\n"
                error_msg += f"    {line.splitlines()[0]}\n"
                lines += 1

        if lines > 1:
            error_msg = "Traceback:\n" + error_msg

        if internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        msg = error.render(color=True) if isinstance(error, LispErrors) else str(error)
        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + msg
        print(error_msg, file=sys.stderr)

        if self.fatal:
            sys.exit(1)
        self.traceback = {path: (None, None) for path in self.traceback}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw("keyboard interrupt")
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw("maximum recursion depth exceeded")
        elif exc_type is LispErrors:
            self.throw(exc_val)
        elif exc_type is InternalError:
            self.throw(f"{exc_val} (this is a bug in pale, please report it)", internal=True)
            do_exit = True
        elif exc_type is not None:
            self.throw(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True)
            do_exit = True

        return not do_exit
