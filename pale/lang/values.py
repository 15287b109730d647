"""Runtime values of the pale language, the shared handles (Vars) that hold them, and Statements, the nodes of the tree
that the parser builds.

Every value lives in a cell, and every holder of a value holds a Var pointing to such a cell. Several Vars may point to
the same cell (see Var.new_ref): writing through one of them is visible through all of them.
"""

from abc import abstractmethod, ABC
from decimal import Decimal
import math

from pale.lang.error import InternalError


FLOATING_EQ_RANGE = 0.001  # if two floats are less than this far apart, they are considered equal


class LispValue(ABC):
    """Superclass of every runtime value."""

    @abstractmethod
    def clone(self):
        """This method should return an independent copy of self, or raise an InternalError if self can't be copied."""

    @abstractmethod
    def display(self):
        """Returns the string used when printing self."""

    def __str__(self):
        return self.display()

    def __repr__(self):
        return f"{type(self).__name__}({self.display()})"


class Integer(LispValue):

    def __init__(self, value):
        self.value = value

    def clone(self):
        return Integer(self.value)

    def display(self):
        return str(self.value)

    def __eq__(self, other):
        return isinstance(other, Integer) and self.value == other.value


class Floating(LispValue):
    """Floating point number. Equality is approximate, see FLOATING_EQ_RANGE."""

    def __init__(self, value):
        self.value = value

    def clone(self):
        return Floating(self.value)

    def display(self):
        """Shortest digits that read back as the same float, in plain notation: 1000 and 0.0001, never 1e3 or 1e-4."""
        if math.isnan(self.value):
            return "NaN"
        elif math.isinf(self.value):
            return "inf" if self.value > 0 else "-inf"

        text = format(Decimal(repr(self.value)), "f")
        return text[:-2] if text.endswith(".0") else text

    def __eq__(self, other):
        return isinstance(other, Floating) and abs(self.value - other.value) < FLOATING_EQ_RANGE


class Str(LispValue):

    def __init__(self, value):
        self.value = value

    def clone(self):
        return Str(self.value)

    def display(self):
        return self.value

    def __repr__(self):
        return f"Str({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Str) and self.value == other.value


class Nil(LispValue):

    def clone(self):
        return Nil()

    def display(self):
        return "nil"

    def __repr__(self):
        return "Nil"

    def __eq__(self, other):
        return isinstance(other, Nil)


class List(LispValue):
    """List of Vars. Not constructible from source yet, only from Python."""

    def __init__(self, items):
        self.items = list(items)

    def clone(self):
        return List(item.maybe_clone() for item in self.items)

    def display(self):
        return "(" + " ".join(str(item) for item in self.items) + ")"

    def __eq__(self, other):
        return isinstance(other, List) and self.items == other.items


class Func(LispValue):
    """Boxes a Callable (see pale.lang.callable) so that it can be stored in a Var."""

    def __init__(self, callable_):
        self.callable = callable_

    def clone(self):
        copied = self.callable.try_clone()
        if copied is None:
            raise InternalError(f"tried to clone {self.callable!r}, which cannot be copied")
        return Func(copied)

    def display(self):
        return "<Function>"

    def __repr__(self):
        return f"Func({self.callable!r})"


class Alias(LispValue):
    """A value that stands for whatever another Var holds. Used for the parameters of user functions, so that reading a
    parameter reads the argument that was passed in.
    """

    def __init__(self, target):
        self.target = target

    def clone(self):
        return self.target.maybe_clone().get()

    def display(self):
        return self.target.get().display()

    def __repr__(self):
        return f"Alias({self.target!r})"

    def __eq__(self, other):
        if isinstance(other, Alias):
            other = other.target.get()
        return self.target.get() == other


class Statement(LispValue):
    """A parsed call: an operator, its arguments and the memoized result of calling it.

    The parser guarantees that op holds a Func. Arguments are not evaluated before the call: the callable resolves
    whichever of them it needs (see Var.resolve).
    """

    def __init__(self, args, op, loc):
        self.args = args  # list of Vars
        self.op = op      # Var holding a Func
        self.res = None   # Var, set on the first successful resolve
        self.loc = loc    # location of the operator, reported by callables

    def resolve(self):
        """Calls op with args and caches the result. Later calls return the cached Var without calling op again."""
        if self.res is None:
            self.res = self.op.func().call(self.args, self.loc)
        return self.res

    def clone(self):
        raise InternalError("tried to clone a statement")

    def display(self):
        return self.resolve().get().display()

    def dump(self, indents=0):
        """Recursively displays the Statement tree with readable format.

        Format:
        Statement(op=<Func>, loc=<Location>, args=[
            Statement(op=<Func>, loc=<Location>, args=[
                ...
            ]),
            <LispValue>,
        ])
        """
        result = f"{'    ' * indents}Statement(op={self.op.get()!r}, loc={self.loc}"
        if self.args:
            result += ", args=["
            for arg in self.args:
                value = arg.get()
                if isinstance(value, Statement):
                    result += "\n" + value.dump(indents + 1) + ","
                else:
                    result += f"\n{'    ' * (indents + 1)}{value!r},"
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __repr__(self):
        return f"Statement(op={self.op.get()!r}, loc={self.loc}, args={len(self.args)})"


class _Cell:
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value


class Var:
    """Shared, mutable handle to a single LispValue.

    - new_ref() aliases: the returned Var shares the cell of self.
    - maybe_clone() copies: the returned Var has a new cell holding a copy of the value.
    """

    def __init__(self, value):
        if not isinstance(value, LispValue):
            raise InternalError(f"Var can only hold LispValues, not {value!r}")
        self._cell = _Cell(value)

    @classmethod
    def nil(cls):
        return cls(Nil())

    def new_ref(self):
        """Returns a new handle to the same cell."""
        ref = Var.__new__(Var)
        ref._cell = self._cell
        return ref

    def maybe_clone(self):
        """Returns a handle to a new cell holding a copy of the value. Raises InternalError for uncopyable values."""
        return Var(self.get().clone())

    def shares_cell(self, other):
        return self._cell is other._cell

    def get(self):
        return self._cell.value

    def set(self, value):
        """Replaces the value in the cell: every alias of self sees the new value."""
        if not isinstance(value, LispValue):
            raise InternalError(f"Var can only hold LispValues, not {value!r}")
        self._cell.value = value

    def resolve(self):
        """Forces a Statement into its (memoized) result. Aliases resolve to their target, anything else to self."""
        value = self.get()
        if isinstance(value, Statement):
            return value.resolve()
        elif isinstance(value, Alias):
            return value.target.resolve()
        return self

    def _unaliased(self):
        value = self.get()
        while isinstance(value, Alias):
            value = value.target.get()
        return value

    def is_func(self):
        return isinstance(self._unaliased(), Func)

    def func(self):
        """Returns the Callable held by self. Only called on Vars the parser checked, so anything else is a bug."""
        value = self._unaliased()
        if not isinstance(value, Func):
            raise InternalError(f"expected a function, but found {value!r}")
        return value.callable

    def __eq__(self, other):
        return isinstance(other, Var) and self.get() == other.get()

    def __str__(self):
        return str(self.get())

    def __repr__(self):
        return f"Var({self.get()!r})"
