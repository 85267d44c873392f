# zkwallet/core/canon.py
import hashlib
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")

def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Returns bytes ready for hashing or handing to the prover.
    """
    return jcs.canonicalize(obj)


def canonical_json_str(obj: Any) -> str:
    """Same as above, but returns string (the form sent to the prover)."""
    return canonical_json(obj).decode("utf-8")


def digest(obj: Any) -> str:
    """Lowercase hex sha256 over the canonical encoding of obj."""
    return hashlib.sha256(canonical_json(obj)).hexdigest()
