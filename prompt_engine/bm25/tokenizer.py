"""
Tokenizer for BM25 text processing.

Tokenization pipeline:
1. Unicode NFC normalization + lowercase conversion
2. Replace everything except letters, digits, whitespace, '+' and '#' with spaces
   (keeps "c++" and "c#", splits "idea-wizard" into "idea" and "wizard")
3. Split on whitespace
4. Drop single-character tokens unless allow-listed ("c", "r")
5. Drop stopwords (common English words)

No stemming: prompt titles and slugs are short, and exact term identity
keeps id/title boosts predictable.
"""

import re
import unicodedata
from typing import Iterable, List

# English stopwords (Lucene standard list plus common filler words)
# These are common words that don't help with ranking
STOPWORDS = frozenset([
    'a', 'about', 'after', 'all', 'also', 'am', 'an', 'and', 'any', 'are',
    'as', 'at', 'be', 'been', 'before', 'being', 'but', 'by', 'can', 'could',
    'did', 'do', 'does', 'doing', 'each', 'for', 'from', 'had', 'has', 'have',
    'having', 'he', 'her', 'here', 'him', 'his', 'how', 'i', 'if', 'in',
    'into', 'is', 'it', 'its', 'just', 'me', 'my', 'no', 'nor', 'not', 'of',
    'on', 'once', 'only', 'or', 'other', 'our', 'ours', 'out', 'over', 'own',
    'same', 'she', 'should', 'so', 'some', 'such', 'than', 'that', 'the',
    'their', 'them', 'then', 'there', 'these', 'they', 'this', 'those',
    'through', 'to', 'too', 'under', 'until', 'up', 'very', 'was', 'we',
    'were', 'what', 'when', 'where', 'which', 'while', 'who', 'whom', 'why',
    'will', 'with', 'would', 'you', 'your', 'yours',
])

# Single-character tokens that carry meaning (language names)
ALLOWED_SHORT_TOKENS = frozenset(['c', 'r'])

# \w is Unicode-aware letters/digits/underscore; underscore is a separator too
_SEPARATOR_RE = re.compile(r'[^\w\s+#]|_')


def tokenize_raw(text: str) -> List[str]:
    """
    Normalize and split text without any filtering.

    Used where exact-term matching matters more than ranking quality.

    Examples:
        >>> tokenize_raw("The Idea-Wizard")
        ['the', 'idea', 'wizard']
    """
    if not text:
        return []

    text = unicodedata.normalize('NFC', text).lower()
    text = _SEPARATOR_RE.sub(' ', text)
    return text.split()


def tokenize(text: str) -> List[str]:
    """
    Tokenize text for BM25 scoring with stopword removal.

    Args:
        text: Input text to tokenize

    Returns:
        List of lowercase tokens without stopwords, in input order

    Examples:
        >>> tokenize("The Idea-Wizard for C++ and C# code")
        ['idea', 'wizard', 'c++', 'c#', 'code']

        >>> tokenize("   ")
        []
    """
    return [
        t for t in tokenize_raw(text)
        if (len(t) > 1 or t in ALLOWED_SHORT_TOKENS) and t not in STOPWORDS
    ]


def ngrams(tokens: Iterable[str], n: int = 2) -> List[str]:
    """
    Character n-grams for each token.

    Tokens shorter than n are emitted whole so short terms still contribute.

    Examples:
        >>> ngrams(["hello"], 3)
        ['hel', 'ell', 'llo']
        >>> ngrams(["ab"], 3)
        ['ab']
    """
    grams: List[str] = []
    for token in tokens:
        if len(token) < n:
            grams.append(token)
            continue
        grams.extend(token[i:i + n] for i in range(len(token) - n + 1))
    return grams
