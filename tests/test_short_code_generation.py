"""
Tests for short code generation and unique-code resolution.
"""
import random
import string

import pytest

from shortlink_app.exceptions import CodeGenerationExhausted
from shortlink_app.services.short_code_strategies import (
    RandomShortCodeStrategy,
    resolve_unique_code,
)

ALPHABET = set(string.ascii_letters + string.digits)


class ScriptedRandom(random.Random):
    """Random whose choices() returns pre-scripted strings"""

    def __init__(self, outputs):
        super().__init__()
        self.outputs = list(outputs)

    def choices(self, population, k=1, **kwargs):
        return list(self.outputs.pop(0))


class TestRandomStrategy:
    """Test random code generation"""

    def test_generates_exact_length(self):
        for length in (1, 4, 6, 12):
            strategy = RandomShortCodeStrategy(length=length)
            assert len(strategy.generate()) == length

    def test_uses_alphanumeric_alphabet(self):
        strategy = RandomShortCodeStrategy(length=8)
        for _ in range(200):
            assert set(strategy.generate()) <= ALPHABET

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            RandomShortCodeStrategy(length=0)

    def test_redraws_reserved_words(self):
        """A code equal to a reserved path (any case) is thrown away"""
        rng = ScriptedRandom(["Health", "health", "xY7abc"])
        strategy = RandomShortCodeStrategy(length=6, reserved=["health"], rng=rng)

        assert strategy.generate() == "xY7abc"
        assert rng.outputs == []

    def test_seeded_generator_is_reproducible(self):
        first = RandomShortCodeStrategy(length=6, rng=random.Random(42))
        second = RandomShortCodeStrategy(length=6, rng=random.Random(42))

        assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]


class TestResolveUniqueCode:
    """Test the generate-then-check retry loop"""

    def test_returns_first_unused_candidate(self):
        candidates = iter(["aaaaaa", "bbbbbb", "cccccc"])
        taken = {"aaaaaa", "bbbbbb"}

        code = resolve_unique_code(10, lambda: next(candidates), lambda c: c in taken)

        assert code == "cccccc"

    def test_first_candidate_free_means_one_call(self):
        calls = []

        def generate():
            calls.append(1)
            return "free01"

        assert resolve_unique_code(10, generate, lambda c: False) == "free01"
        assert len(calls) == 1

    @pytest.mark.parametrize("max_attempts", [1, 3, 10])
    def test_exhaustion_after_exactly_max_attempts(self, max_attempts):
        calls = []

        def generate():
            calls.append(1)
            return f"code{len(calls):02d}"

        with pytest.raises(CodeGenerationExhausted) as exc_info:
            resolve_unique_code(max_attempts, generate, lambda c: True)

        assert len(calls) == max_attempts
        assert exc_info.value.attempts == max_attempts

    def test_exists_checked_for_every_candidate(self):
        checked = []
        candidates = iter(["one111", "two222"])

        def exists(code):
            checked.append(code)
            return code == "one111"

        resolve_unique_code(5, lambda: next(candidates), exists)

        assert checked == ["one111", "two222"]

    def test_rejects_non_positive_budget(self):
        with pytest.raises(ValueError):
            resolve_unique_code(0, lambda: "x", lambda c: False)
