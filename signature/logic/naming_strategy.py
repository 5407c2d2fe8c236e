from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

_REVISION_SUFFIX = re.compile(r"_signed_r\d+$")


@dataclass(frozen=True)
class NamingContext:
    original_name: str
    revision: int


class NamingStrategy(Protocol):
    def strategy_id(self) -> str: ...
    def propose_filename(self, ctx: NamingContext) -> str: ...


class RevisionSuffixStrategy:
    """Default: contract.pdf, revision 3 -> contract_signed_r3.pdf"""
    def strategy_id(self) -> str:
        return "revision_suffix"

    def propose_filename(self, ctx: NamingContext) -> str:
        if ctx.revision < 1:
            raise ValueError(f"Revision numbers start at 1, got {ctx.revision}")
        stem = _REVISION_SUFFIX.sub("", Path(ctx.original_name).stem) or "document"
        return f"{stem}_signed_r{ctx.revision}.pdf"
