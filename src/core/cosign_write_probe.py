import asyncio
import logging
import os
import secrets
import tempfile
from typing import Awaitable, Callable, List, Tuple

from abstractions.write_probe import WriteProbe, WriteProbeError

logger = logging.getLogger(__name__)

# (returncode, stdout, stderr)
CommandResult = Tuple[int, bytes, bytes]
Runner = Callable[[List[str]], Awaitable[CommandResult]]

STDERR_TAIL_CHARS = 500


async def run_command(cmd: List[str]) -> CommandResult:
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise WriteProbeError(f"cosign binary not found: {cmd[0]}") from e
    stdout, stderr = await proc.communicate()
    return proc.returncode, stdout, stderr


class CosignWriteProbe(WriteProbe):
    """
    Signs a random blob with a Fulcio-issued certificate, logs it to Rekor, then verifies it.

    The signing identity comes from an OIDC token file, typically a projected
    Kubernetes service account token.
    """

    def __init__(
        self,
        fulcio_url: str,
        rekor_url: str,
        identity_token_path: str,
        cosign_path: str = "cosign",
        runner: Runner = run_command,
    ):
        self.fulcio_url = fulcio_url
        self.rekor_url = rekor_url
        self.identity_token_path = identity_token_path
        self.cosign_path = cosign_path
        self._runner = runner

    def _read_identity_token(self) -> str:
        try:
            with open(self.identity_token_path, encoding="utf-8") as f:
                token = f.read().strip()
        except OSError as e:
            raise WriteProbeError(
                f"Cannot read identity token {self.identity_token_path}: {e}"
            ) from e
        if not token:
            raise WriteProbeError(f"Identity token {self.identity_token_path} is empty")
        return token

    def sign_command(self, token: str, blob: str, bundle: str) -> List[str]:
        return [
            self.cosign_path,
            "sign-blob",
            "--yes",
            "--fulcio-url", self.fulcio_url,
            "--rekor-url", self.rekor_url,
            "--identity-token", token,
            "--bundle", bundle,
            blob,
        ]

    def verify_command(self, blob: str, bundle: str) -> List[str]:
        return [
            self.cosign_path,
            "verify-blob",
            "--rekor-url", self.rekor_url,
            "--bundle", bundle,
            "--certificate-identity-regexp", ".*",
            "--certificate-oidc-issuer-regexp", ".*",
            blob,
        ]

    async def _run_step(self, step: str, cmd: List[str]):
        returncode, _, stderr = await self._runner(cmd)
        if returncode != 0:
            tail = stderr.decode(errors="replace").strip()[-STDERR_TAIL_CHARS:]
            raise WriteProbeError(f"cosign {step} exited with {returncode}: {tail}")
        logger.info(f"cosign {step} succeeded")

    async def run(self) -> None:
        token = self._read_identity_token()
        with tempfile.TemporaryDirectory(prefix="prober-write-") as workdir:
            blob = os.path.join(workdir, "blob.txt")
            bundle = os.path.join(workdir, "blob.bundle")
            with open(blob, "w", encoding="utf-8") as f:
                f.write(secrets.token_hex(32))
            await self._run_step("sign-blob", self.sign_command(token, blob, bundle))
            await self._run_step("verify-blob", self.verify_command(blob, bundle))
