"""pale: a small Lisp interpreter. See pale/interpreter.py for an overview of the pipeline."""

from pale.interpreter import run_lisp, run_lisp_dumped
from pale.lang.error import InternalError, LispErrors

__all__ = ["run_lisp", "run_lisp_dumped", "LispErrors", "InternalError"]
