import re
from pathlib import Path

_ADDRESS_RE = re.compile(r"^[^@\s,]+@[^@\s,]+$")


def validate_content(content: str, field: str = "Content") -> None:
    """Validate that content is not empty or whitespace-only.

    Raises ValueError if invalid.
    """
    if not content or not content.strip():
        raise ValueError(f"{field} cannot be empty or whitespace-only")


def normalize_recipients(raw: str) -> str:
    """Validate a comma-separated address list and return it in canonical 'a, b' form.

    Raises ValueError if any address is malformed.
    """
    validate_content(raw, "Recipient")
    addresses = [a.strip() for a in raw.split(",") if a.strip()]
    bad = [a for a in addresses if not _ADDRESS_RE.match(a)]
    if bad:
        raise ValueError(f"Invalid address: {', '.join(bad)}")
    return ", ".join(addresses)


def read_body(body: str | None, file: str | None) -> str | None:
    """Message body from --body or --file ('-' reads stdin)."""
    if body is not None and file is not None:
        raise ValueError("use either --body or --file, not both")
    if file is None:
        return body
    if file == "-":
        import sys

        return sys.stdin.read()
    try:
        return Path(file).expanduser().read_text()
    except OSError as e:
        raise ValueError(f"cannot read {file}: {e}") from e
