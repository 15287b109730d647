"""pale interpreter.

Basic program flow:
    1. Lexical analysis: the source is split into Tokens (see pale/lang/lexical.py)
    2. Parsing: a Statement tree is built from the Tokens, resolving identifiers and `let` bindings against a Scope as it
       goes (see pale/lang/syntax.py)
    3. Evaluation: the root Statement is resolved, which calls its operator with its (lazy) arguments. Results of
       Statements are memoized (see pale/lang/values.py and pale/lang/callable.py)

Any error along the way is raised as LispErrors, whose str() is the formatted diagnostic. A run that fails leaves its
Scope as it found it: `let` bindings made before the error are dropped.
"""

from pale.lang.error import LispErrors
from pale.lang.lexical import Location, tokenize
from pale.lang.syntax import Scope, make_ast


def run_lisp(source, source_name="<provided>", scope=None, first_line=1):
    """Runs source and returns the display string of its result. source_name is only used in error locations. If scope
    is None, a fresh default Scope is used; otherwise `let` bindings are added to scope.
    """
    return run(source, source_name, scope, first_line, dump=False)


def run_lisp_dumped(source, source_name="<provided>", scope=None, first_line=1):
    """Same as run_lisp, but prints the Tokens and the Statement tree before evaluating."""
    return run(source, source_name, scope, first_line, dump=True)


def run(source, source_name, scope, first_line, dump):
    if scope is None:
        scope = Scope.default()
    bindings = scope.snapshot()

    try:
        if dump:
            print("Tokens = " + repr(tokenize(source, source_name, first_line)))
        statement = parse(source, source_name, scope, first_line)
        if dump:
            print("Ast = " + statement.dump())
        return evaluate(statement, Location(source_name, first_line, 1))
    except LispErrors:
        scope.restore(bindings)
        raise


def parse(source, source_name, scope=None, first_line=1):
    """Returns the Statement tree of source."""
    if scope is None:
        scope = Scope.default()
    start = Location(source_name, first_line, 1)

    tokens = tokenize(source, source_name, first_line)
    try:
        return make_ast(tokens, scope, start)
    except RecursionError:
        raise nesting_error(start) from None


def evaluate(statement, start):
    """Resolves statement and returns the display string of its result."""
    try:
        return str(statement.resolve())
    except RecursionError:
        raise nesting_error(start) from None


def nesting_error(loc):
    return LispErrors().error(loc, "Maximum nesting depth exceeded!").note(None, "Split this into smaller statements.")
