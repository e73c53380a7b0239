"""Conditional header dependency for catalog routes.

Collects If-Match / If-None-Match into one ``ConditionalHeaders`` value so
route handlers hand the raw headers to the conditional evaluator instead of
interpreting them.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Header

from catalog.logic.conditional import ConditionalHeaders


def conditional_headers(
    if_match: Annotated[Optional[str], Header(alias="If-Match")] = None,
    if_none_match: Annotated[Optional[str], Header(alias="If-None-Match")] = None,
) -> ConditionalHeaders:
    return ConditionalHeaders(if_match=if_match, if_none_match=if_none_match)


__all__ = ["conditional_headers"]
