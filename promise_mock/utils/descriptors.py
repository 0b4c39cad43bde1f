"""
Descriptor utilities
"""

import types
from typing import Any, Callable, Optional


class dualmethod:
    """
    Method with separate instance and class behaviour

    Accessed on an instance it binds the first function to the instance;
    accessed on the class it binds the function registered with
    ``.classmethod`` to the class. Used the same way as property.setter::

        @dualmethod
        def resolve(self, value=None): ...

        @resolve.classmethod
        def resolve(cls, value=None): ...
    """

    def __init__(self, func: Callable[..., Any], classfunc: Optional[Callable[..., Any]] = None):
        self.func = func
        self.classfunc = classfunc
        self.__doc__ = func.__doc__
        self.__name__ = func.__name__

    def classmethod(self, classfunc: Callable[..., Any]) -> "dualmethod":
        return type(self)(self.func, classfunc)

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            if self.classfunc is None:
                raise AttributeError(
                    f"{self.__name__} is only available on instances"
                )
            return types.MethodType(self.classfunc, owner)
        return types.MethodType(self.func, instance)
