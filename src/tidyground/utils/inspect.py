"""Provide insights about Python objects."""

import functools
import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of the given object.

    Used to give a readable representation of the
    functions invoked by expressions, so that printing
    an expression shows something like ``pyarrow.compute.add(...)``.

    Partials are represented by the function they wrap.

    >>> class Cleaner:
    ...   def strip(self, arg):
    ...     pass
    >>> get_qualname(Cleaner.strip)
    'tidyground.utils.inspect.Cleaner.strip'
    >>> get_qualname(functools.partial(Cleaner.strip, None))
    'tidyground.utils.inspect.Cleaner.strip'
    """
    if isinstance(obj, functools.partial):
        return get_qualname(obj.func)

    module = inspect.getmodule(obj)
    module_name = module.__name__ if module is not None else "<unknown>"
    if inspect.ismethod(obj) or inspect.isfunction(obj):
        if getattr(obj, "__self__", None) is not None:
            class_name = obj.__self__.__class__.__name__
            return f"{module_name}.{class_name}.{obj.__name__}"
        return f"{module_name}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module_name}.{obj.__name__}"
    elif inspect.ismodule(obj):
        return obj.__name__
    elif hasattr(obj, "__name__"):
        return f"{module_name}.{obj.__name__}"
    return f"{module_name}.{obj.__class__.__name__}"
