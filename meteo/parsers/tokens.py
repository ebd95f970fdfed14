from __future__ import annotations


def tokenize(body: str | None) -> tuple[str, ...]:
    tokens = (body or "").split()
    if tokens and tokens[-1].endswith("="):
        last = tokens.pop().rstrip("=")
        if last:
            tokens.append(last)
    return tuple(tokens)
