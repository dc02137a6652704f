"""Identifier Generator Interface"""

from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """Produces unique identifiers for cards, entries and usage records"""

    @abstractmethod
    def new_id(self) -> str:
        pass
