"""Textual sweep for HTTP route declarations."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Tuple

from ..logging import get_logger
from ..models import Endpoint
from ..scanner import detect_language

logger = get_logger("extractors.endpoints")

_ROUTE = r"""(?P<quote>["'`])(?P<route>/[^"'`\s]*)(?P=quote)"""

# Catalogue of route-declaration idioms; no framework awareness.
ROUTE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    # app.get("/x"), router.post('/x'), @app.put("/x"), r.GET("/x")
    re.compile(r"@?\b[A-Za-z_][\w]*\.(?:get|post|put|delete)\(\s*" + _ROUTE, re.IGNORECASE),
    # @GetMapping("/x"), @RequestMapping(value = "/x", method = RequestMethod.POST)
    re.compile(
        r"@(?:Get|Post|Put|Delete|Request)Mapping\(\s*(?:(?:value|path)\s*=\s*)?"
        + _ROUTE
        + r"[^)]*\)"
    ),
    # http.HandleFunc("/x", h), mux.Handle("/x", h)
    re.compile(r"\.(?:HandleFunc|Handle)\(\s*" + _ROUTE),
    # @app.route("/x", methods=["POST"])
    re.compile(r"\.route\(\s*" + _ROUTE + r"[^)]*\)"),
)

# First verb found anywhere in the match wins; "/posts" under a delete call reads as POST.
_METHOD_ORDER: Tuple[str, ...] = ("post", "put", "delete")


def infer_method(match: re.Match[str]) -> str:
    """Infer the HTTP verb from the whole matched registration text."""
    lowered = match.group(0).lower()
    for verb in _METHOD_ORDER:
        if verb in lowered:
            return verb.upper()
    return "GET"


def scan_text(text: str) -> Iterable[Endpoint]:
    for pattern in ROUTE_PATTERNS:
        for match in pattern.finditer(text):
            method = infer_method(match)
            yield Endpoint(
                method=method,
                path=match.group("route"),
                description=f"{method} endpoint",
            )


def extract_endpoints(root: Path, files: Iterable[str]) -> List[Endpoint]:
    """Sweep the given repository-relative source files for route declarations.

    Every match is reported, in file order and then catalogue order.
    """
    endpoints: List[Endpoint] = []
    for relative in files:
        if detect_language(relative) is None:
            continue
        try:
            text = (root / relative).read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.debug("Skipping %s during endpoint sweep: %s", relative, exc)
            continue
        endpoints.extend(scan_text(text))
    return endpoints


__all__ = ["ROUTE_PATTERNS", "extract_endpoints", "infer_method", "scan_text"]
