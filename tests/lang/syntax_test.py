import unittest

from pale.lang.callable import IntrinsicOp
from pale.lang.error import LispErrors
from pale.lang.lexical import Location, tokenize
from pale.lang.syntax import Scope, make_ast
from pale.lang.values import Func, Integer, Nil, Statement, Str, Var


START = Location("-", 1, 1)


def parse(source, scope=None):
    return make_ast(tokenize(source, "-"), Scope.default() if scope is None else scope, START)


def error_of(source, scope=None):
    """Returns the rendered LispErrors raised while parsing source."""
    try:
        parse(source, scope)
    except LispErrors as errors:
        return str(errors)
    raise AssertionError(f"{source!r} parsed without errors")


class ScopeTestCase(unittest.TestCase):

    def test_default(self):
        scope = Scope.default()
        for name, op in {"print": IntrinsicOp.PRINT, "+": IntrinsicOp.ADD, "-": IntrinsicOp.SUBTRACT,
                         "*": IntrinsicOp.MULTIPLY}.items():
            self.assertIn(name, scope)
            self.assertIs(op, scope.get(name).func())
        self.assertIsNone(scope.get("let"))

    def test_default_scopes_are_independent(self):
        first, second = Scope.default(), Scope.default()
        first.insert("x", Var(Integer(1)), START)
        self.assertIn("x", first)
        self.assertNotIn("x", second)
        self.assertFalse(first.get("+").shares_cell(second.get("+")))

    def test_insert(self):
        scope = Scope()
        var = Var(Integer(1))
        scope.insert("x", var, START)
        self.assertIs(var, scope.get("x"))

        with self.assertRaises(LispErrors) as context:
            scope.insert("x", Var(Integer(2)), START)
        self.assertIn("Shadowing is not currently allowed", str(context.exception))
        self.assertIs(var, scope.get("x"))

    def test_snapshot_restore(self):
        scope = Scope.default()
        bindings = scope.snapshot()
        scope.insert("x", Var(Integer(1)), START)
        scope.restore(bindings)
        self.assertNotIn("x", scope)
        self.assertIn("+", scope)
        scope.insert("x", Var(Integer(2)), START)
        self.assertEqual(Integer(2), scope.get("x").get())


class MakeAstTestCase(unittest.TestCase):

    def test_statement(self):
        statement = parse("(+ 1 2)")
        self.assertIsInstance(statement, Statement)
        self.assertIs(IntrinsicOp.ADD, statement.op.func())
        self.assertEqual([Var(Integer(1)), Var(Integer(2))], statement.args)
        self.assertEqual(Location("-", 1, 2), statement.loc)
        self.assertIsNone(statement.res)

    def test_operator_aliases_scope(self):
        scope = Scope.default()
        statement = parse("(+ 1 2)", scope)
        self.assertTrue(statement.op.shares_cell(scope.get("+")))

    def test_unwrapped(self):
        cases = ["+ 1 2", "(+ 1 2)", "((+ 1 2))", "+ 1 (+ 1 1)", "(+ 1 2) ", "print $+ 1 2"]
        for case in cases:
            self.assertIsInstance(parse(case), Statement, case)

    def test_nested_statements_are_lazy(self):
        statement = parse('(+ 34 (+ 34 1) (print "x"))')
        nested = [arg.get() for arg in statement.args[1:]]
        for value in nested:
            self.assertIsInstance(value, Statement)
            self.assertIsNone(value.res)
        self.assertIs(IntrinsicOp.PRINT, nested[1].op.func())
        self.assertEqual([Var(Str("x"))], nested[1].args)

    def test_single_nested_statement_is_flattened(self):
        statement = parse("((* 2 3))")
        self.assertIs(IntrinsicOp.MULTIPLY, statement.op.func())

    def test_literals(self):
        statement = parse('print nil')
        self.assertEqual([Var(Nil())], statement.args)

    def test_literals_are_fresh(self):
        first, second = parse("+ 1 1").args
        self.assertFalse(first.shares_cell(second))

    def test_parse_errors(self):
        cases = {
            "(": "-:1:1 - Unmatched opening parentheses!\n\tNOTE: Deleting it might fix this error.",
            ")": "-:1:1 - Unmatched closing parentheses!\n\tNOTE: Delete it.",
            "(+ 1 2))": "-:1:8 - Unmatched closing parentheses!\n\tNOTE: Delete it.",
            "(+ 1 (+ 2 3)": "-:1:1 - Unmatched opening parentheses!\n\tNOTE: Deleting it might fix this error.",
            "()": "-:1:1 - Empty statements are not allowed!",
            "": "-:1:1 - Empty statements are not allowed!",
            "(+ 1 ())": "-:1:6 - Empty statements are not allowed!",
            "(foo 1)": "-:1:2 - Unknown identifier `foo`!",
            "(+ 1 (- 2 bar))": "-:1:11 - Unknown identifier `bar`!",
            "(1 2 3)": "-:1:1 - Raw lists are not available (Yet...)!\n\tNOTE: This is not a function.",
            '"a"': "-:1:1 - Raw lists are not available (Yet...)!\n\tNOTE: This is not a function.",
            "((+ 1 2) 3)": "-:1:1 - Raw lists are not available (Yet...)!\n\tNOTE: This is not a function.",
            "(lambda (x) x)": "-:1:2 - Lambdas are not currently implemented!",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, error_of(case), case)

    def test_unknown_identifier_location(self):
        self.assertEqual("-:2:4 - Unknown identifier `foo`!", error_of("(+ 1\n   foo)"))


class LetTestCase(unittest.TestCase):

    def test_let(self):
        scope = Scope.default()
        statement = parse("(let ((x 1) (y \"s\") z) (+ x 2))", scope)

        self.assertEqual(Integer(1), scope.get("x").get())
        self.assertEqual(Str("s"), scope.get("y").get())
        self.assertEqual(Nil(), scope.get("z").get())

        self.assertIs(IntrinsicOp.ADD, statement.op.func())
        self.assertTrue(statement.args[0].shares_cell(scope.get("x")))

    def test_let_aliases_existing(self):
        scope = Scope.default()
        scope.insert("a", Var(Integer(5)), START)
        parse("(let ((b a)) (+ b 1))", scope)
        self.assertTrue(scope.get("b").shares_cell(scope.get("a")))

    def test_let_function(self):
        scope = Scope.default()
        statement = parse("(let ((plus +)) (plus 1 2))", scope)
        self.assertIs(IntrinsicOp.ADD, statement.op.func())

    def test_let_in_nested_statement(self):
        scope = Scope.default()
        parse("(+ 1 (let ((x 2)) (+ x x)))", scope)
        self.assertEqual(Integer(2), scope.get("x").get())

    def test_bindings_are_introduced_together(self):
        scope = Scope.default()
        error_of("(let ((x 1) (x 2)) x)", scope)
        self.assertNotIn("x", scope)

    def test_let_errors(self):
        shadow = "Shadowing is not currently allowed (`{}` is already defined)!\n\tNOTE: Change its name."
        cases = {
            "(let ((x 1) (x 2)) x)": "-:1:13 - " + shadow.format("x"),
            "(let ((+ 1)) 1)": "-:1:7 - " + shadow.format("+"),
            "(let ((print 1) (+ 2)) 1)": "-:1:7 - " + shadow.format("print") + "\n-:1:17 - " + shadow.format("+"),
            "(let ((x 8) (y x)) y)": "-:1:13 - Making a variable depend upon another in the statement is not "
                                     "currently implemented!",
            "(let ((x y)) x)": "-:1:7 - Unknown identifier `y`!",
            "(let ((x)) x)": "-:1:7 - Variable defined in parentheses must have an initial value.\n"
                             "\tNOTE: -:1:7 - Remove the parentheses around it.",
            "(let ((())) x)":"-:1:8 - Variable names must be literals!",
            "(let ((1 2)) x)": "-:1:8 - Cannot assign to literal value!",
            "(let ((x (+ 1 2))) x)": "-:1:10 - Variables must be literals or other values (not expressions)!",
            "(let ((x 1 (2))) x)": "-:1:12 - Unknown opening parenthesis.\n\tNOTE: -:1:12 - Delete it.",
            "(let ((x 1 2)) x)": "-:1:12 - Identifier not allowed here!\n\tNOTE: -:1:12 - Remove it.",
            "(let (1) x)": "-:1:7 - Unknown literal in `let` statement.\n\tNOTE: Bind it to a variable name.\n"
                           "\tNOTE: -:1:7 - Delete it.",
            "(let ((let 1)) x)": "-:1:8 - Keywords are not allowed in variable assignments!",
            "(let (()) 1)": "-:1:7 - Empty bindings are not allowed!",
            "(let x)": "-:1:6 - Expected a list of bindings after `let`!",
            "(+ 1 let)": "-:1:6 - Expected a list of bindings after `let`!",
            "(let ((x 1) x)": "-:1:1 - Unmatched opening parentheses!\n\tNOTE: Deleting it might fix this error.",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, error_of(case), case)

    def test_let_without_body(self):
        self.assertIn("Raw lists are not available", error_of("(let ((x 1)))"))
        self.assertIn("Raw lists are not available", error_of("(let ((x 1)) x)"))


if __name__ == '__main__':
    unittest.main()
