_TRUTHY = {"1", "true", "yes", "on"}
_FALSEY = {"0", "false", "no", "off"}


def parse_flag(raw: object, default: bool) -> bool:
    """Interpret ``raw`` as a boolean flag.

    Accepts typical truthy/falsey string values like "1", "0", "true", "false",
    "yes", "no", "on", and "off" (case-insensitive). Real booleans pass through.
    Returns ``default`` for ``None``, blanks, or anything it cannot interpret.
    """
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return default
    norm = str(raw).strip().lower()
    if norm in _TRUTHY:
        return True
    if norm in _FALSEY:
        return False
    return default


def parse_int(raw: object, default: int) -> int:
    """Return ``raw`` as an ``int`` or ``default`` when it is blank or malformed."""
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if raw is None:
        return default
    text = str(raw).strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        return default
