"""Handles interactive/command-line mode for the pale interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """pale interpreter shell."""
    intro = "pale interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""

    def default(self, line):
        """Executes arbitrary pale statement."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            source = self._tmp_line + line

            if not self.sess.is_complete(source):
                self._tmp_line = source + "\n"
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.add(source)
            self.sess.run()

            if self.sess.results:
                print(self.sess.pop())

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the pale interpreter!\n\n"
              "pale is a small Lisp. A statement is an operator followed by its arguments, \n"
              "like '(+ 1 2)'. The outermost parentheses may be left out, and '$' wraps the \n"
              "rest of a statement in parentheses: 'print $+ 1 2' is '(print (+ 1 2))'.\n\n"
              "Built in are 'print', '+', '-' and '*'. Try binding a name with \n"
              "'(let ((x 40)) (+ x 2))': 'x' stays defined for the rest of the session.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        if self._tmp_line:
            self.default("")
        return False

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
