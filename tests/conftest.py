import random

import pytest

from phrase_tutor.models import AudioAvailability, Phrase


def make_phrase(n, source, target, difficulty=None):
    return Phrase(id=f"p{n}", source_text=source, target_text=target, position=n, difficulty=difficulty)


@pytest.fixture
def phrases():
    """Five phrases with single-word answers so typed answers are easy to control."""
    return [
        make_phrase(1, "Accident", "Wypadek", "easy"),
        make_phrase(2, "Dog", "Pies", "easy"),
        make_phrase(3, "Cat", "Kot", "medium"),
        make_phrase(4, "House", "Dom", "hard"),
        Phrase(id="p5", source_text="Water", target_text="Woda", position=5,
               audio=AudioAvailability(has_source_audio=True)),
    ]


@pytest.fixture
def rng():
    return random.Random(1234)
