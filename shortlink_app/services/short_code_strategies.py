"""
Short code generation for URL shortener.

Generation is split in two:
- a ShortCodeStrategy only produces candidate codes (no storage access)
- resolve_unique_code() asks the strategy for candidates and checks each one
  against the store until an unused one turns up or the budget runs out
"""

import random
import string
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional

from shortlink_app.exceptions import CodeGenerationExhausted


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""
    
    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate short code.
        
        Returns:
            A code string; uniqueness is NOT guaranteed
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random generation strategy.
    Draws each character independently from [a-zA-Z0-9].
    
    Pros: Simple, unpredictable, no coordination between servers
    Cons: Collisions possible, so callers must check the store
    """
    
    CHARACTERS = string.ascii_letters + string.digits
    
    def __init__(
        self,
        length: int = 6,
        reserved: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None
    ):
        if length < 1:
            raise ValueError(f"Short code length must be positive, got {length}")
        self.length = length
        self.reserved = frozenset(word.lower() for word in (reserved or ()))
        self._rng = rng or random.SystemRandom()
    
    def generate(self) -> str:
        """Generate a random code, redrawing the rare reserved-word hit"""
        while True:
            short_code = self._generate_random_string()
            if short_code.lower() not in self.reserved:
                return short_code
    
    def _generate_random_string(self) -> str:
        """Generate a random string of specified length"""
        return ''.join(self._rng.choices(self.CHARACTERS, k=self.length))


def resolve_unique_code(
    max_attempts: int,
    generate: Callable[[], str],
    exists: Callable[[str], bool]
) -> str:
    """
    Return the first generated code that `exists` reports as unused.

    Calls `generate` at most `max_attempts` times.

    Raises:
        CodeGenerationExhausted: every candidate was already taken
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    for _ in range(max_attempts):
        candidate = generate()
        if not exists(candidate):
            return candidate

    raise CodeGenerationExhausted(max_attempts)
