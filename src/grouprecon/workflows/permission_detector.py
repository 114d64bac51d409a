"""Classify a group's public-access posture from its about-page markup."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from ..core.keys import K_JOIN, K_POST, K_VIEW
from .settings import DEFAULT_PHRASES

_FLAGS = re.IGNORECASE

CompiledPhrases = Dict[str, List[re.Pattern]]


@dataclass(frozen=True)
class PermissionProfile:
    is_public: bool = False
    can_view: bool = False
    can_join: bool = False
    can_post: bool = False
    requires_auth: bool = False

    @classmethod
    def auth_required(cls) -> "PermissionProfile":
        return cls(is_public=False, requires_auth=True)

    def is_exposed(self, *, require_post: bool = False) -> bool:
        """Public and viewable-or-joinable; optionally also postable."""

        exposed = self.is_public and (self.can_view or self.can_join)
        if require_post:
            exposed = exposed and self.can_post
        return exposed

    def describe(self, email: str) -> str:
        return (
            f"Group: {email} | Public: {self.is_public} | View: {self.can_view} | "
            f"Post: {self.can_post} | Join: {self.can_join} | RequireAuth: {self.requires_auth}"
        )


def compile_phrases(phrases: Optional[Mapping[str, Sequence[str]]] = None) -> CompiledPhrases:
    """Compile capability phrase patterns; missing capabilities use defaults."""

    merged = {**DEFAULT_PHRASES, **(phrases or {})}
    return {key: [re.compile(p, _FLAGS) for p in patterns] for key, patterns in merged.items()}


_DEFAULT_COMPILED = compile_phrases()


def _visible_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return " ".join(soup.get_text(" ").split())


def _any_match(patterns: Iterable[re.Pattern], haystacks: Sequence[str]) -> bool:
    return any(pat.search(text) for pat in patterns for text in haystacks)


def detect_permissions(html: str, phrases: Optional[CompiledPhrases] = None) -> PermissionProfile:
    """Classify a successfully fetched (hence public) about page.

    Each capability is an independent signal; the raw markup and its visible
    text are both scanned so tags between words do not hide a phrase.
    """

    compiled = phrases if phrases is not None else _DEFAULT_COMPILED
    markup = html or ""
    haystacks = [markup]
    if "<" in markup:
        haystacks.append(_visible_text(markup))
    return PermissionProfile(
        is_public=True,
        can_view=_any_match(compiled.get(K_VIEW, ()), haystacks),
        can_join=_any_match(compiled.get(K_JOIN, ()), haystacks),
        can_post=_any_match(compiled.get(K_POST, ()), haystacks),
        requires_auth=False,
    )


__all__ = [
    "PermissionProfile",
    "compile_phrases",
    "detect_permissions",
]
