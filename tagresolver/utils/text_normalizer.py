"""Text normalization for track matching.

Turns free text (titles, artist names, album names) into comparable
tokens.  Both sides of a comparison -- the local library track and the
catalog candidate -- go through the same :func:`normalize` call, so
"Café Del Mar" and "CAFE del mar" produce identical token lists.

The transformation is deliberately simple and order preserving:

* a fixed accent substitution table (Latin-1 plus a few Latin Extended-A
  letters) folds accented characters onto their ASCII base letter,
* text is lowercased,
* punctuation is replaced by whitespace,
* the result is split on whitespace.

No de-duplication and no stop-word removal happen here; the scorer
decides how repeated tokens count.
"""

import re

# Accented characters and their ASCII replacements, position for position.
_ACCENTS = "ÀÁÂÃÄÅàáâãäåÒÓÔÕÖØòóôõöøÈÉÊËèéêëðÇçÐÌÍÎÏìíîïÙÚÛÜùúûüÑñŠšŸÿýŽž"
_FIXES = "AAAAAAaaaaaaOOOOOOooooooEEEEeeeeeCcDIIIIiiiiUUUUuuuuNnSsYyyZz"

_ACCENT_TABLE = str.maketrans(_ACCENTS, _FIXES)

# Anything that is not a word character or whitespace counts as punctuation.
# The underscore is a word character for ``re`` but not for us.
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")


def fold_accents(text: str) -> str:
    """Replace accented characters using the fixed substitution table.

    Characters outside the table are left untouched.
    """
    return text.translate(_ACCENT_TABLE)


def normalize(text: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Tokenize one text field, or several fields in order.

    Parameters
    ----------
    text:
        A single string, or a sequence of strings (e.g. ``[title, artist]``).
        ``None`` entries and ``None`` itself produce no tokens.

    Returns
    -------
    list[str]
        Lowercase ASCII-folded tokens.  For a sequence input the tokens of
        each field are concatenated in field order.

    Examples
    --------
    >>> normalize(["Café", "DJ Mëtrö"])
    ['cafe', 'dj', 'metro']
    """
    if text is None:
        return []
    if isinstance(text, str):
        fields = [text]
    else:
        fields = [field for field in text if field]

    tokens: list[str] = []
    for field in fields:
        folded = fold_accents(field).lower()
        tokens.extend(_PUNCTUATION_RE.sub(" ", folded).split())
    return tokens
