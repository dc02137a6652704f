"""Gift Card Code Generator

Codes are grouped in blocks of four (XXXX-XXXX-XXXX) and drawn from an
alphabet without the easily confused characters 0, O, 1 and I.
"""

import secrets
from typing import Callable, Optional

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GROUP_SIZE = 4


class GiftCardCodeGenerator:
    """
    Random gift card code generator

    Args:
        length: Number of code characters, excluding dashes
        choice: Function picking one character from the alphabet
            (defaults to secrets.choice)
    """

    def __init__(self, length: int = 12, choice: Optional[Callable[[str], str]] = None):
        if length <= 0:
            raise ValueError("Code length must be positive")
        self.length = length
        self._choice = choice or secrets.choice

    def generate(self) -> str:
        characters = "".join(self._choice(CODE_ALPHABET) for _ in range(self.length))
        groups = [characters[i:i + GROUP_SIZE] for i in range(0, self.length, GROUP_SIZE)]
        return "-".join(groups)
