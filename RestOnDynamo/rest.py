from abc import abstractmethod
from typing import Generic, TypeVar, Optional, Callable


I = TypeVar('I')
D = TypeVar('D')
V = TypeVar('V')


class BaseRestInterface(Generic[I, D, V]):
    """
    Generic definition of the REST paradigm.
    I is the identifier type, D the data type and V the return type of every verb.
    """

    @abstractmethod
    def get(self, id: I, callback: Optional[Callable] = None) -> V:
        raise Exception("get not implemented")

    @abstractmethod
    def head(self, id: I, callback: Optional[Callable] = None) -> V:
        raise Exception("head not implemented")

    @abstractmethod
    def post(self, id: I, data: D, callback: Optional[Callable] = None) -> V:
        raise Exception("post not implemented")

    @abstractmethod
    def put(self, id: I, data: D, callback: Optional[Callable] = None) -> V:
        raise Exception("put not implemented")

    @abstractmethod
    def patch(self, id: I, data: D, callback: Optional[Callable] = None) -> V:
        raise Exception("patch not implemented")

    @abstractmethod
    def delete(self, id: I, callback: Optional[Callable] = None) -> V:
        raise Exception("delete not implemented")
