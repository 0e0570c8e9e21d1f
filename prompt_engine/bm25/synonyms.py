"""
Query expansion with a static synonym table.

The table is hand-authored for the prompt library vocabulary. Lookups work in
both directions: a key expands to its listed synonyms, and a listed synonym
pulls in its key (and the key's other synonyms). Terms linked through any
chain of entries form one group; groups are computed once at import time so
expansion is O(1) per token and expanding twice adds nothing new.

Expansion only adds terms; the original query tokens are always kept first.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

SYNONYMS: Dict[str, List[str]] = {
    "agent": ["assistant", "bot", "ai"],
    "automate": ["automation", "script", "scripting", "cli"],
    "bug": ["error", "issue", "defect", "fix"],
    "code": ["source", "program", "implementation"],
    "debug": ["debugging", "troubleshoot", "diagnose"],
    "docs": ["documentation", "readme", "guide"],
    "explain": ["describe", "clarify", "walkthrough"],
    "fast": ["quick", "performance", "speed"],
    "idea": ["ideas", "brainstorm", "brainstorming", "ideation"],
    "improve": ["improvement", "enhance", "optimize"],
    "plan": ["planning", "roadmap", "strategy"],
    "refactor": ["refactoring", "restructure", "cleanup", "rewrite"],
    "review": ["audit", "critique", "inspect"],
    "security": ["vulnerability", "secure", "auth"],
    "test": ["tests", "testing", "spec", "unit"],
    "write": ["create", "generate", "compose"],
}


def _build_synonym_groups(table: Dict[str, List[str]]) -> Dict[str, Tuple[str, ...]]:
    """Map every term in the table to its group, ordered as authored."""
    parent: Dict[str, str] = {}

    def find(term: str) -> str:
        while parent[term] != term:
            parent[term] = parent[parent[term]]
            term = parent[term]
        return term

    for key, synonyms in table.items():
        parent.setdefault(key, key)
        for synonym in synonyms:
            parent.setdefault(synonym, synonym)
            parent[find(synonym)] = find(key)

    members: Dict[str, List[str]] = defaultdict(list)
    for key, synonyms in table.items():
        for term in (key, *synonyms):
            group = members[find(term)]
            if term not in group:
                group.append(term)

    return {term: tuple(members[find(term)]) for term in parent}


_SYNONYM_GROUPS = _build_synonym_groups(SYNONYMS)


def expand_query(tokens: Iterable[str]) -> List[str]:
    """
    Expand query tokens with synonyms.

    Args:
        tokens: Tokenized query (lowercase)

    Returns:
        Deduplicated tokens: the input first (in order), then the rest of each
        token's synonym group

    Examples:
        >>> expand_query(["bug"])
        ['bug', 'error', 'issue', 'defect', 'fix']
        >>> expand_query(["readme"])
        ['readme', 'docs', 'documentation', 'guide']
    """
    tokens = list(tokens)
    expanded: List[str] = []
    seen = set()

    for term in tokens:
        if term not in seen:
            seen.add(term)
            expanded.append(term)

    for token in tokens:
        for term in _SYNONYM_GROUPS.get(token, ()):
            if term not in seen:
                seen.add(term)
                expanded.append(term)

    return expanded
