"""Parsing for the pale language: builds a Statement tree out of the Tokens of a single statement, resolving identifiers
against a Scope as it goes. Identifiers are resolved while parsing, not while evaluating, so the parser is also where
`let` bindings are introduced.

`let` grammar:

```
<let>      ::= "let" "(" <binding>* ")" <arg>*
<binding>  ::= <ident>                      ; bound to nil
             | "(" <ident> <literal> ")"
             | "(" <ident> <ident> ")"      ; second <ident> must be bound before the `let`
```
"""

from enum import Enum

from pale.lang.callable import INTRINSICS
from pale.lang.error import LispErrors
from pale.lang.lexical import KeyWord, TokenType
from pale.lang.values import Func, Statement, Var


class Scope:
    """Mapping of identifier name to Var. Names are unique: a Scope never rebinds a name, and only forgets the names of
    a failed run (see restore).
    """

    def __init__(self, variables=None):
        self.vars = dict(variables) if variables else {}

    @classmethod
    def default(cls):
        """Returns a new Scope holding the intrinsics."""
        return cls({intrinsic.symbol: Var(Func(intrinsic)) for intrinsic in INTRINSICS})

    def get(self, name):
        return self.vars.get(name)

    def check_new(self, name, loc):
        """Returns LispErrors describing why name can't be introduced at loc (empty if it can)."""
        errors = LispErrors()
        if name in self.vars:
            errors.error(loc, f"Shadowing is not currently allowed (`{name}` is already defined)!")
            errors.note(None, "Change its name.")
        return errors

    def insert(self, name, var, loc):
        """Binds name to var. Raises LispErrors if name is already bound."""
        errors = self.check_new(name, loc)
        if errors:
            raise errors
        self.vars[name] = var

    def snapshot(self):
        """Returns the current bindings, to be passed to restore."""
        return dict(self.vars)

    def restore(self, bindings):
        """Drops every name bound since bindings was taken by snapshot."""
        self.vars.clear()
        self.vars.update(bindings)

    def __contains__(self, name):
        return name in self.vars

    def __repr__(self):
        return f"Scope({', '.join(self.vars)})"


class ParserStatus(Enum):
    NORMAL = "normal"      # collecting arguments
    BINDINGS = "bindings"  # collecting the binding list of a `let`


class Binding:
    """A `let` binding being collected. value is a Var, or the name of the identifier it refers to."""

    def __init__(self, loc):
        self.loc = loc
        self.name = None
        self.value = None


def raw_list_error(loc):
    return LispErrors().error(loc, "Raw lists are not available (Yet...)!").note(None, "This is not a function.")


class AstParser:
    """Parses the tokens of one statement. Nested statements are handed to a new AstParser sharing the same Scope."""

    def __init__(self, tokens, scope, start):
        self.tokens = tokens
        self.scope = scope
        self.start = start  # location of the statement, for errors about the statement as a whole

        self.open_stack = []  # indices of unmatched START tokens
        self.args = []        # Vars collected at depth 0
        self.loc = None       # location of the operator
        self.status = ParserStatus.NORMAL
        self.let_start = None

    def unwrap(self):
        """Returns the span of self.tokens inside the outer parentheses, if the whole statement is wrapped in them."""
        if not self.tokens or self.tokens[0].kind is not TokenType.START:
            return 0, len(self.tokens)

        depth = 0
        for idx, token in enumerate(self.tokens):
            if token.kind is TokenType.START:
                depth += 1
            elif token.kind is TokenType.END:
                depth -= 1
                if depth == 0:
                    if idx == len(self.tokens) - 1:
                        return 1, idx
                    break
        return 0, len(self.tokens)

    def push_arg(self, var, loc):
        if not self.args:
            self.loc = loc
        self.args.append(var)

    def parse(self):
        """Returns the Statement described by self.tokens. Raises LispErrors if it isn't one."""
        start_idx, end_idx = self.unwrap()
        if start_idx >= end_idx:
            raise LispErrors().error(self.start, "Empty statements are not allowed!")

        for idx in range(start_idx, end_idx):
            if self.status is ParserStatus.BINDINGS:
                self.parse_bindings_token(idx)
            else:
                self.parse_token(idx)

        if self.status is ParserStatus.BINDINGS:
            if self.open_stack:
                loc = self.tokens[self.open_stack.pop()].loc
                raise LispErrors().error(loc, "Unmatched opening parentheses!").note(None, "Deleting it might fix this error.")
            raise LispErrors().error(self.tokens[self.let_start].loc, "Expected a list of bindings after `let`!")

        if self.open_stack:
            loc = self.tokens[self.open_stack.pop()].loc
            raise LispErrors().error(loc, "Unmatched opening parentheses!").note(None, "Deleting it might fix this error.")

        return self.finish()

    def parse_token(self, idx):
        token = self.tokens[idx]

        if token.kind is TokenType.START:
            self.open_stack.append(idx)

        elif token.kind is TokenType.END:
            if not self.open_stack:
                raise LispErrors().error(token.loc, "Unmatched closing parentheses!").note(None, "Delete it.")
            opening = self.open_stack.pop()
            if not self.open_stack:
                statement = make_ast(self.tokens[opening:idx + 1], self.scope, self.tokens[opening].loc)
                self.push_arg(Var(statement), self.tokens[opening].loc)

        elif self.open_stack:
            return  # parsed along with its statement once the statement is closed

        elif token.kind is TokenType.KEYWORD:
            if token.value is KeyWord.LAMBDA:
                raise LispErrors().error(token.loc, "Lambdas are not currently implemented!")
            self.status = ParserStatus.BINDINGS
            self.let_start = idx

        elif token.kind is TokenType.LITERAL:
            self.push_arg(Var(token.value.clone()), token.loc)

        else:
            var = self.scope.get(token.value)
            if var is None:
                raise LispErrors().error(token.loc, f"Unknown identifier `{token.value}`!")
            self.push_arg(var.new_ref(), token.loc)

    def parse_bindings_token(self, idx):
        """Tracks the binding list following `let` and processes it once it is closed."""
        token = self.tokens[idx]

        if idx == self.let_start + 1 and token.kind is not TokenType.START:
            raise LispErrors().error(token.loc, "Expected a list of bindings after `let`!")

        if token.kind is TokenType.START:
            self.open_stack.append(idx)
        elif token.kind is TokenType.END:
            self.open_stack.pop()
            if not self.open_stack:
                self.introduce(self.collect_bindings(self.tokens[self.let_start + 2:idx]))
                self.status = ParserStatus.NORMAL

    def collect_bindings(self, tokens):
        """Returns the Bindings in the tokens of a binding list, without touching the Scope."""
        bindings = []
        binding = None  # binding whose parentheses are open
        for token in tokens:
            if token.kind is TokenType.KEYWORD:
                raise LispErrors().error(token.loc, "Keywords are not allowed in variable assignments!")

            elif binding is None:
                if token.kind is TokenType.START:
                    binding = Binding(token.loc)
                elif token.kind is TokenType.IDENT:
                    bare = Binding(token.loc)
                    bare.name = token.value
                    bindings.append(bare)
                elif token.kind is TokenType.LITERAL:
                    raise (LispErrors()
                           .error(token.loc, "Unknown literal in `let` statement.")
                           .note(None, "Bind it to a variable name.")
                           .note(token.loc, "Delete it."))

            elif token.kind is TokenType.START:
                if binding.name is None:
                    raise LispErrors().error(token.loc, "Variable names must be literals!")
                elif binding.value is None:
                    raise LispErrors().error(token.loc, "Variables must be literals or other values (not expressions)!")
                raise LispErrors().error(token.loc, "Unknown opening parenthesis.").note(token.loc, "Delete it.")

            elif token.kind is TokenType.END:
                if binding.name is None:
                    raise LispErrors().error(binding.loc, "Empty bindings are not allowed!")
                elif binding.value is None:
                    raise (LispErrors()
                           .error(binding.loc, "Variable defined in parentheses must have an initial value.")
                           .note(binding.loc, "Remove the parentheses around it."))
                bindings.append(binding)
                binding = None

            elif binding.name is None:
                if token.kind is TokenType.LITERAL:
                    raise LispErrors().error(token.loc, "Cannot assign to literal value!")
                binding.name = token.value

            elif binding.value is not None:
                raise LispErrors().error(token.loc, "Identifier not allowed here!").note(token.loc, "Remove it.")

            elif token.kind is TokenType.LITERAL:
                binding.value = Var(token.value.clone())
            else:
                binding.value = token.value

        return bindings

    def introduce(self, bindings):
        """Adds bindings to the Scope, all at once. Raises LispErrors (for every offending binding) if a binding refers
        to a sibling binding, or would shadow a name.
        """
        names = {binding.name for binding in bindings}
        errors = LispErrors()
        seen = set()

        for binding in bindings:
            if isinstance(binding.value, str):
                if binding.value in names:
                    errors.error(binding.loc, "Making a variable depend upon another in the statement is not currently "
                                              "implemented!")
                elif binding.value not in self.scope:
                    errors.error(binding.loc, f"Unknown identifier `{binding.value}`!")

            errors.extend(self.scope.check_new(binding.name, binding.loc))
            if binding.name in seen:
                errors.error(binding.loc, f"Shadowing is not currently allowed (`{binding.name}` is already defined)!")
                errors.note(None, "Change its name.")
            seen.add(binding.name)

        if errors:
            raise errors

        for binding in bindings:
            if binding.value is None:
                value = Var.nil()
            elif isinstance(binding.value, str):
                value = self.scope.get(binding.value).new_ref()
            else:
                value = binding.value
            self.scope.insert(binding.name, value, binding.loc)

    def finish(self):
        """Builds the Statement out of the collected arguments."""
        if not self.args:
            raise raw_list_error(self.start)

        op, *args = self.args
        if op.is_func():
            return Statement(args, op, self.loc)

        if not args and isinstance(op.get(), Statement):
            return op.get()
        raise raw_list_error(self.start)


def make_ast(tokens, scope, start):
    """Parses tokens (a single statement, optionally wrapped in parentheses) into a Statement, adding any `let` bindings
    to scope. start is the location reported for errors about the statement as a whole.
    """
    return AstParser(tokens, scope, start).parse()
