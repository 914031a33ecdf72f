"""Caesar Cipher - Pure functions for puzzle encoding and answer checks.

All functions are pure apart from encode(), which draws a random shift
unless one is supplied.
"""

import random

from .errors import ValidationFailure
from .models import EncodedPuzzle


ALPHABET_SIZE = 26
MIN_SHIFT = 1
MAX_SHIFT = 25

MIN_SENTENCE_LENGTH = 10
MIN_SENTENCE_WORDS = 3
MAX_SENTENCE_WORDS = 20


def rotate(text: str, amount: int) -> str:
    """Rotate every ASCII letter forward by amount, keeping its case.

    Args:
        text: Text to rotate
        amount: Positions to move forward (any integer, taken mod 26)

    Returns:
        Rotated text; non-letters are unchanged
    """
    out = []
    for char in text:
        if "a" <= char <= "z":
            base = ord("a")
        elif "A" <= char <= "Z":
            base = ord("A")
        else:
            out.append(char)
            continue
        out.append(chr((ord(char) - base + amount) % ALPHABET_SIZE + base))
    return "".join(out)


def encode(
    sentence: str,
    shift: int | None = None,
    rng: random.Random | None = None,
) -> EncodedPuzzle:
    """Encode a sentence with a Caesar shift.

    Args:
        sentence: Plain sentence
        shift: Shift in [1, 25]; drawn uniformly when omitted
        rng: Random source used to draw the shift

    Returns:
        EncodedPuzzle with the encoded text and the shift
    """
    if shift is None:
        shift = (rng or random).randint(MIN_SHIFT, MAX_SHIFT)
    if not MIN_SHIFT <= shift <= MAX_SHIFT:
        raise ValueError(f"shift must be in [{MIN_SHIFT}, {MAX_SHIFT}], got {shift}")
    return EncodedPuzzle(encoded=rotate(sentence, shift), shift=shift)


def decode_hint(shift: int) -> int:
    """Forward rotation that undoes a shift.

    A rotation of 0 decodes nothing, so it is shown as 26.
    """
    rotation = (ALPHABET_SIZE - shift) % ALPHABET_SIZE
    return rotation or ALPHABET_SIZE


def decode(encoded: str, rotation: int) -> str:
    """Apply a hint rotation to an encoded sentence."""
    return rotate(encoded, rotation)


def verify(candidate: str, original: str) -> bool:
    """Check an answer: surrounding whitespace and case are ignored."""
    return candidate.strip().lower() == original.lower()


def validate_sentence(text: str | None) -> str:
    """Reject generated sentences that are unusable as puzzles.

    Args:
        text: Sentence returned by a puzzle generator

    Returns:
        The stripped sentence

    Raises:
        ValidationFailure: If empty, too short, or outside the word bounds
    """
    sentence = (text or "").strip()
    if len(sentence) < MIN_SENTENCE_LENGTH:
        raise ValidationFailure("Generated sentence is too short.")

    words = len(sentence.split())
    if words < MIN_SENTENCE_WORDS or words > MAX_SENTENCE_WORDS:
        raise ValidationFailure(
            f"Generated sentence must have {MIN_SENTENCE_WORDS}-{MAX_SENTENCE_WORDS} words, got {words}."
        )
    return sentence
