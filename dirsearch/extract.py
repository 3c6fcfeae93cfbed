"""
dirsearch/extract.py

Everything that touches the raw files under a root:

    enumerate_files(root) -> sorted list of file paths (os.walk, recursive)
    Extractor().read(path) -> raw text, dispatched by suffix
        .pdf   -> pdfplumber, text of all pages concatenated (no page marker)
        other  -> decoded as utf-8 (a leading BOM is dropped); binary content
                  (NUL bytes) or invalid utf-8 makes the file unreadable

By default the decoded text is cleaned the same way for every format:
html.unescape + ftfy (mojibake like "Ã¢\\x80\\x93" becomes regular chars,
ligatures like "ﬁ" become "fi", "&eacute;" becomes "é"), so terms are counted on
the cleaned text. Extractor(clean=False) counts the raw text instead.

Any failure to read or parse a file raises PathUnreadable(path, reason); callers
decide whether to skip that document or abort the build.
"""

import os
import html

import pdfplumber
from ftfy import fix_text

from dirsearch.errors import PathUnreadable, RootNotFound
from dirsearch.paths import PDF_SUFFIXES
from dirsearch.utils import log

# utf-8-sig also reads plain utf-8; it only strips a leading BOM
TEXT_ENCODING = "utf-8-sig"


def enumerate_files(root: str, verbose: bool = True) -> list[str]:
    """
    Return every regular file under `root` (recursively), sorted by path.

    Raises RootNotFound if root is missing or not a directory. Errors on
    individual sub-directories are reported and skipped.
    """
    root = os.fspath(root)
    if not os.path.isdir(root):
        raise RootNotFound(root)

    def _onerror(err):
        log("Extract", f"skipped {getattr(err, 'filename', '?')}: {err}", verbose)

    paths = []
    for dirpath, _, files in os.walk(root, onerror=_onerror):
        for name in files:
            path = os.path.join(dirpath, name)
            if os.path.isfile(path):
                paths.append(path)
    return sorted(paths)


def clean_text(text: str) -> str:
    return fix_text(html.unescape(text))


def read_plain_text(path: str) -> str:
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise PathUnreadable(path, str(e)) from e

    # NUL never appears in text files; images, archives and executables are full of it
    if b"\x00" in raw:
        raise PathUnreadable(path, "binary content")
    try:
        return raw.decode(TEXT_ENCODING)
    except UnicodeDecodeError as e:
        raise PathUnreadable(path, f"not utf-8 text: {e.reason} at byte {e.start}") from e


def read_pdf_text(path: str) -> str:
    try:
        with pdfplumber.open(path) as pdf:
            return "".join(page.extract_text() or "" for page in pdf.pages)
    except Exception as e:
        # pdfplumber/pdfminer raise a zoo of parser exceptions; all mean "unreadable"
        raise PathUnreadable(path, f"{type(e).__name__}: {e}") from e


class Extractor:
    """
    Suffix -> reader dispatch table.

    Typical usage:
        ex = Extractor()
        ex.register(".md", read_plain_text)
        text = ex.read("docs/intro.pdf")

    Readers take a path and return raw text, raising PathUnreadable on failure.
    Instances are picklable as long as the registered readers are module-level
    functions, so they can be shipped to worker processes.
    """

    def __init__(self, readers=None, default=read_plain_text, clean=True):
        self.readers = {suffix: read_pdf_text for suffix in PDF_SUFFIXES}
        if readers:
            for suffix, reader in readers.items():
                self.register(suffix, reader)
        self.default = default
        self.clean = clean

    def register(self, suffix: str, reader) -> None:
        self.readers[suffix.lower()] = reader

    def reader_for(self, path: str):
        suffix = os.path.splitext(path)[1].lower()
        return self.readers.get(suffix, self.default)

    def read(self, path: str) -> str:
        text = self.reader_for(path)(path)
        if self.clean:
            text = clean_text(text)
        return text

    __call__ = read


def read_text(path: str) -> str:
    return Extractor().read(path)
