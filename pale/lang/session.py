"""Session control for the pale language. Runs the interpreter either on a file, on a command-line argument or line by
line from the interactive shell.
"""

from pale.interpreter import run_lisp, run_lisp_dumped
from pale.lang.error import LispErrors
from pale.lang.lexical import TokenType, tokenize
from pale.lang.syntax import Scope


class Session:
    """Governs a pale session. All statements of a session share a single Scope, so `let` bindings made by one
    statement are visible to the following ones.
    """
    SH_FILE = "<in>"         # interactive shell filename
    CMD_FILE = "<provided>"  # filename of source given with --command

    def __init__(self, error_handler, path, cmd_line, dump=False):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in interactive mode
        self.dump = dump          # whether or not to print tokens and statement trees

        self.scope = Scope.default()
        self.to_exec = []  # list of (source, line num of its first line) to run
        self.results = []  # display strings of the results of run statements
        self.line_num = 0  # lines added so far

        if self.cmd_line:
            self.error_handler.fatal = False

        if path not in (Session.SH_FILE, Session.CMD_FILE):
            try:
                with open(path, "r") as file:
                    self.add(file.read())
            except OSError:
                raise LispErrors().error(None, f"'{path}' could not be opened")

        elif path == Session.SH_FILE and not cmd_line:
            raise LispErrors().error(None, f"'{Session.SH_FILE}' is a reserved filename")

    @staticmethod
    def is_complete(source):
        """Whether source can be run as is, or needs more lines (unterminated string, comment or parentheses). Used for
        line continuations in interactive mode.
        """
        try:
            tokens = tokenize(source, Session.SH_FILE)
        except LispErrors:
            return False

        depth = 0
        for token in tokens:
            if token.kind is TokenType.START:
                depth += 1
            elif token.kind is TokenType.END:
                depth -= 1
        return depth <= 0

    def add(self, source):
        """Adds source to the session. Evaluation is delayed until run is called."""
        self.to_exec.append((source, self.line_num + 1))
        self.line_num += max(len(source.splitlines()), 1)

    def run(self):
        """Runs this session's pending sources in order, storing their results. Will raise any errors that are
        encountered; pending sources are dropped either way.
        """
        runner = run_lisp_dumped if self.dump else run_lisp
        try:
            for source, line_num in self.to_exec:
                self.error_handler.register_line(self.path, source, line_num)
                self.results.append(runner(source, self.path, self.scope, line_num))
                self.error_handler.remove_line(self.path)
        finally:
            self.to_exec = []

    def pop(self):
        """Removes and returns the latest result."""
        return self.results.pop()
