import hashlib


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _fmt_part(v: object) -> str:
    # 1000 and 1000.0 must hash the same
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def checksum(*parts: object) -> str:
    """sha256 over the colon-joined parts; used to detect unchanged reprocessing."""
    return sha256_hex(":".join(_fmt_part(p) for p in parts))
