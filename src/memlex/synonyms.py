"""
memlex synonyms -- abbreviation and alias expansion for FTS5 queries.

Porter stemming in the index already covers morphological variants
(running -> run). What it cannot bridge is abbreviations and aliases whose
surface forms share no stem, so that is all this table holds. Keep it small;
every entry widens recall for every query that touches it.
"""

import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

ABBREVIATIONS: Dict[str, Tuple[str, ...]] = {
    # Aliases (not abbreviations, but interchangeable in practice)
    "login": ("login", "auth", "authentication", "signin"),
    "signin": ("signin", "auth", "authentication", "login"),
    "signup": ("signup", "register", "registration"),
    "logout": ("logout", "signout"),
    # Tech abbreviations
    "db": ("db", "database"),
    "auth": ("auth", "authentication", "login"),
    "authn": ("authn", "authentication"),
    "authz": ("authz", "authorization"),
    "js": ("js", "javascript"),
    "ts": ("ts", "typescript"),
    "py": ("py", "python"),
    "env": ("env", "environment"),
    "config": ("config", "configuration"),
    "repo": ("repo", "repository"),
    "deps": ("deps", "dependencies"),
    "dev": ("dev", "development"),
    "prod": ("prod", "production"),
    "pkg": ("pkg", "package"),
    "dir": ("dir", "directory"),
    "msg": ("msg", "message"),
    "req": ("req", "request"),
    "res": ("res", "response"),
    "fn": ("fn", "function"),
    "param": ("param", "parameter"),
    "params": ("params", "parameters"),
    "args": ("args", "arguments"),
    "impl": ("impl", "implementation"),
    "info": ("info", "information"),
    "err": ("err", "error"),
    "doc": ("doc", "document", "documentation"),
    "docs": ("docs", "documentation"),
    "lib": ("lib", "library"),
    "num": ("num", "number"),
    "str": ("str", "string"),
    "bool": ("bool", "boolean"),
    "obj": ("obj", "object"),
    "arr": ("arr", "array"),
    "idx": ("idx", "index"),
    "cmd": ("cmd", "command"),
    "cli": ("cli", "command-line"),
    "api": ("api", "endpoint"),
    "url": ("url", "endpoint", "link"),
    "ui": ("ui", "interface"),
    "css": ("css", "style", "styling"),
    "sql": ("sql", "query", "database"),
    "jwt": ("jwt", "token"),
    "oauth": ("oauth", "authentication"),
    "ssl": ("ssl", "tls", "certificate"),
    "dns": ("dns", "domain"),
    "ws": ("ws", "websocket"),
    "ci": ("ci", "continuous-integration"),
    "cd": ("cd", "continuous-deployment"),
    "k8s": ("k8s", "kubernetes"),
}

_SAFE_TERM_RE = re.compile(r"^[a-z0-9_-]+$", re.IGNORECASE)


def _quote(term: str) -> str:
    """Quote a term as an FTS5 string literal."""
    return '"' + term.replace('"', '""') + '"'


class SynonymTable:
    """Immutable alias groups plus the derived reverse index.

    Built once; safe to share between threads since nothing mutates it after
    construction.
    """

    __slots__ = ("_groups", "_reverse")

    def __init__(self, groups: Mapping[str, Iterable[str]]):
        frozen = {key.lower(): tuple(dict.fromkeys(t.lower() for t in members)) for key, members in groups.items()}
        reverse: Dict[str, List[str]] = {}
        for members in frozen.values():
            for term in members:
                siblings = reverse.setdefault(term, [])
                for sibling in members:
                    if sibling != term and sibling not in siblings:
                        siblings.append(sibling)
        self._groups = MappingProxyType(frozen)
        self._reverse = MappingProxyType({term: tuple(sibs) for term, sibs in reverse.items()})

    @property
    def groups(self) -> Mapping[str, Tuple[str, ...]]:
        return self._groups

    def expand(self, term: str) -> List[str]:
        """Expand one term. Always includes the (lowercased) term itself."""
        lower = term.lower()
        direct = self._groups.get(lower)
        if direct is not None:
            return list(direct)
        siblings = self._reverse.get(lower)
        if siblings:
            return [lower, *siblings]
        return [lower]

    def expand_query(self, terms: Iterable[str]) -> List[str]:
        """Union of expand() over all terms, de-duplicated in first-seen order."""
        expanded: Dict[str, None] = {}
        for term in terms:
            for synonym in self.expand(term):
                expanded.setdefault(synonym, None)
        return list(expanded)

    def build_match_expression(self, terms: List[str]) -> str:
        """Build an FTS5 MATCH expression: quoted expanded terms joined by OR.

        Terms that are not plain alphanumeric/hyphen/underscore are dropped.
        If that leaves nothing, the original terms are quoted verbatim so a
        non-empty input never yields an empty expression.
        """
        safe = [_quote(t) for t in self.expand_query(terms) if _SAFE_TERM_RE.match(t)]
        if not safe:
            return " OR ".join(_quote(t) for t in terms)
        return " OR ".join(safe)


DEFAULT_SYNONYMS = SynonymTable(ABBREVIATIONS)


def expand(term: str) -> List[str]:
    return DEFAULT_SYNONYMS.expand(term)


def expand_query(terms: Iterable[str]) -> List[str]:
    return DEFAULT_SYNONYMS.expand_query(terms)


def build_match_expression(terms: List[str]) -> str:
    return DEFAULT_SYNONYMS.build_match_expression(terms)
