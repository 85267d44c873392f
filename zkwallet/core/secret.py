# zkwallet/core/secret.py
import secrets

SECRET_SIZE = 32

# Scalar field of BN254, the curve the wallet circuits are defined over.
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617


class Secret:
    """
    Private value that proves ownership of an account.

    Held in a wipeable buffer and never rendered by repr()/str(). Use it as a
    context manager so the value only lives for the block that needs it:

        with parse_secret(hex_value) as secret:
            coordinator.prove_authorized(tx, sender, secret)
    """

    __slots__ = ("_buf",)

    def __init__(self, raw: bytes):
        if len(raw) != SECRET_SIZE:
            raise ValueError(f"secret must be {SECRET_SIZE} bytes")
        self._buf = bytearray(raw)

    @classmethod
    def generate(cls) -> "Secret":
        value = secrets.randbelow(FIELD_MODULUS)
        return cls(value.to_bytes(SECRET_SIZE, "big"))

    @property
    def wiped(self) -> bool:
        return self._buf is None

    def reveal_hex(self) -> str:
        """The only way to read the value; callers must not log or store the result."""
        if self._buf is None:
            raise ValueError("secret has already been wiped")
        return self._buf.hex()

    def wipe(self) -> None:
        if self._buf is not None:
            for i in range(len(self._buf)):
                self._buf[i] = 0
            self._buf = None

    def __enter__(self) -> "Secret":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wipe()

    def __repr__(self) -> str:
        return "Secret(<redacted>)"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError("Secret values cannot be pickled")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Secret) or self._buf is None or other._buf is None:
            return NotImplemented
        return secrets.compare_digest(bytes(self._buf), bytes(other._buf))

    __hash__ = None
