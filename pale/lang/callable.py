"""Everything that can sit in the operator position of a Statement: the intrinsic operations and user functions."""

from abc import abstractmethod, ABC
from functools import reduce
import operator

from pale.lang.error import LispErrors
from pale.lang.values import Alias, Integer, Var


class Callable(ABC):
    """Capability of being called with a list of argument Vars and the Location of the call."""

    @abstractmethod
    def call(self, args, loc):
        """This method should return the Var holding the result of the call, or raise LispErrors. Arguments are
        unevaluated: call Var.resolve on the ones that are needed.
        """

    def try_clone(self):
        """Returns an independent copy of self, or None if self can't be copied."""
        return None


class IntrinsicOp(Callable):
    """Built-in operation. Arithmetic intrinsics fold their integer arguments with fold; PRINT has none."""

    def __init__(self, symbol, operation, fold=None):
        self.symbol = symbol        # name in the default scope
        self.operation = operation  # name of the operation in error messages
        self.fold = fold

    def call(self, args, loc):
        if self.fold is None:
            if len(args) != 1:
                raise (LispErrors()
                       .error(loc, "Print intrinsic requires only one argument!")
                       .note(None, "Try wrapping this in a statement with `$`."))
            print(args[0].resolve())
            return Var(Integer(0))

        if len(args) < 2:
            raise (LispErrors()
                   .error(loc, f"{self.operation.capitalize()} requires at least two arguments!")
                   .note(None, f"`{self.symbol}` was given {len(args)}."))

        return Var(Integer(reduce(self.fold, [self.integer(arg, loc) for arg in args])))

    def integer(self, arg, loc):
        """Resolves arg and returns its value as a Python int."""
        value = arg.resolve().get()
        if not isinstance(value, Integer):
            msg = f"Incompatible types for {self.operation} (`{self.symbol}`): expected an integer, got `{value}`!"
            raise LispErrors().error(loc, msg)
        return value.value

    def try_clone(self):
        return IntrinsicOp(self.symbol, self.operation, self.fold)

    def __eq__(self, other):
        return isinstance(other, IntrinsicOp) and self.symbol == other.symbol

    def __hash__(self):
        return hash(self.symbol)

    def __repr__(self):
        return f"IntrinsicOp({self.symbol})"


IntrinsicOp.ADD = IntrinsicOp("+", "addition", operator.add)
IntrinsicOp.SUBTRACT = IntrinsicOp("-", "subtraction", operator.sub)
IntrinsicOp.MULTIPLY = IntrinsicOp("*", "multiplication", operator.mul)
IntrinsicOp.PRINT = IntrinsicOp("print", "printing")

INTRINSICS = [IntrinsicOp.PRINT, IntrinsicOp.ADD, IntrinsicOp.SUBTRACT, IntrinsicOp.MULTIPLY]


class Function(Callable):
    """User function: a body Statement that reads its parameters from a fixed list of Vars.

    Parameter Vars are reused across calls instead of being allocated per call, so a function must not be called again
    while one of its calls is still being evaluated (e.g. recursively). The body is memoized like any other Statement:
    calling the function again returns the result of its first successful call, whatever the new arguments.
    """

    def __init__(self, params, body):
        self.params = params  # list of Vars that body refers to
        self.body = body      # Statement

    def call(self, args, loc):
        if len(args) < len(self.params):
            raise (LispErrors()
                   .error(loc, "Insufficient arguments provided!")
                   .note(None, f"Expected {len(self.params)}, got {len(args)}."))
        elif len(args) > len(self.params):
            raise (LispErrors()
                   .error(loc, "Too many arguments provided!")
                   .note(None, f"Expected {len(self.params)}, got {len(args)}.")
                   .note(loc, "Delete them."))

        for param, arg in zip(self.params, args):
            param.set(Alias(arg.new_ref()))

        return self.body.resolve()

    def __repr__(self):
        return f"Function(params={len(self.params)})"
