"""
dirsearch/parser.py

Turns raw document text into index terms.

Rules:
- split on whitespace
- keep a unit only if *every* character is alphanumeric in the Unicode
  sense: Alphabetic (this includes combining vowel signs such as Devanagari
  matras and Arabic harakat) or Numeric
- lowercase what is kept

So "Cat" -> "cat", "c3po" -> "c3po", but "cat," / "u.s." / "e-mail" are dropped
whole (no splitting on punctuation). Queries go through the exact same function,
otherwise recall silently degrades.
"""

import regex

# \p{Alphabetic} covers Other_Alphabetic marks that str.isalnum() rejects
TERM_RE = regex.compile(r"[\p{Alphabetic}\p{N}]+")


class Parser:
    """
    Whitespace tokenizer with an all-alphanumeric filter.

    Methods:
        tokenize(text) -> list[str]
        iter_tokens(text) -> generator of terms (same order as tokenize)
    """

    def iter_tokens(self, text: str):
        for unit in text.split():
            if TERM_RE.fullmatch(unit):
                yield unit.lower()

    def tokenize(self, text: str) -> list[str]:
        """
        Normalize a raw text string into terms.
        Returns [] for empty / whitespace-only / all-punctuation input.
        """
        return list(self.iter_tokens(text))


_default_parser = Parser()


def tokenize(text: str) -> list[str]:
    return _default_parser.tokenize(text)


if __name__ == "__main__":
    parser = Parser()
    for sample in ["Hello World", "what is a tensor?", "C3PO and R2D2, friends."]:
        print(repr(sample), "->", parser.tokenize(sample))
