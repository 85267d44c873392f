# zkwallet/prover/process.py
import json
import logging
import subprocess
from typing import List, Optional

from . import ProverBackend, ProverReply, ProverTimeout

logger = logging.getLogger(__name__)


class SubprocessProver(ProverBackend):
    """
    Runs the proving program once per request.

    The request is written to the child's stdin as one JSON object, so the
    secret never shows up in argv or the process table. The reply is read
    from stdout; stderr carries diagnostics. Undecodable bytes come back as
    U+FFFD, so a binary reply fails parsing instead of decoding.
    """

    def __init__(self, command: List[str], env: Optional[dict] = None):
        if not command:
            raise ValueError("Prover command is empty")
        self.command = list(command)
        self.env = env

    def run(self, request: dict, timeout: float) -> ProverReply:
        operation = request.get("operation", "?")
        logger.debug("Invoking prover %s (operation=%s)", self.command[0], operation)
        try:
            result = subprocess.run(
                self.command,
                input=json.dumps(request),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                env=self.env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ProverTimeout(f"prover did not answer within {timeout:g}s") from e

        return ProverReply(
            exit_code=result.returncode,
            stdout=(result.stdout or "").strip(),
            stderr=(result.stderr or "").strip(),
        )
