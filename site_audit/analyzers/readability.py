"""
Flesch Reading Ease for page text.

Syllables are counted with English vowel-group rules plus an exception
list; no external service is involved.
"""

import re
import string
from dataclasses import dataclass
from typing import List

SYLLABLE_EXCEPTIONS = {
    "area": 3, "idea": 3, "real": 2, "ruin": 2, "science": 2,
    "create": 2, "creature": 2, "feature": 2, "measure": 2,
    "employee": 3, "every": 3, "evening": 3, "everything": 4,
    "business": 2, "different": 3, "family": 3, "interest": 3,
    "favorite": 3, "separate": 3, "comfortable": 4,
}

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'-]*")


@dataclass
class ReadabilityScore:
    flesch_reading_ease: float
    word_count: int
    sentence_count: int
    syllable_count: int

    @property
    def avg_sentence_length(self) -> float:
        return self.word_count / self.sentence_count if self.sentence_count else 0.0


def count_syllables(word: str) -> int:
    """Syllables in a word using English phonology rules (minimum 1)."""
    word = word.lower().strip(string.punctuation)
    if not word:
        return 0
    if word in SYLLABLE_EXCEPTIONS:
        return SYLLABLE_EXCEPTIONS[word]

    count = 0
    prev_is_vowel = False
    for char in word:
        is_vowel = char in "aeiouy"
        if is_vowel and not prev_is_vowel:
            count += 1
        prev_is_vowel = is_vowel

    # Silent e, but not -le
    if word.endswith("e") and not word.endswith("le") and count > 1:
        count -= 1
    if word.endswith("ed") and count > 1 and not word.endswith(("ted", "ded")):
        count -= 1
    if word.endswith("es") and count > 1 and not word.endswith(("ses", "xes", "zes", "ches", "shes")):
        count -= 1

    return max(1, count)


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT_RE.split(text.strip()) if _WORD_RE.search(s)]


def flesch_reading_ease(text: str) -> ReadabilityScore:
    """
    Flesch Reading Ease: 206.835 - 1.015 * (words/sentences) - 84.6 * (syllables/words).

    Empty text scores 0.
    """
    words = _WORD_RE.findall(text)
    sentences = split_sentences(text)
    if not words:
        return ReadabilityScore(0.0, 0, len(sentences), 0)

    sentence_count = max(1, len(sentences))
    syllables = sum(count_syllables(word) for word in words)
    score = 206.835 - 1.015 * (len(words) / sentence_count) - 84.6 * (syllables / len(words))
    return ReadabilityScore(
        flesch_reading_ease=round(max(0.0, min(100.0, score)), 1),
        word_count=len(words),
        sentence_count=sentence_count,
        syllable_count=syllables,
    )
