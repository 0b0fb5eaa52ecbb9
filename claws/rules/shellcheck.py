"""Run ``run`` scripts through shellcheck."""

import logging
import os
import re
import shutil
import subprocess
from typing import Optional

from claws.models.violation import Violation
from claws.models.workflow import Job, Step, Workflow
from claws.pipeline.rules.models import HookBuilder, MissingExternalTool, Rule

logger = logging.getLogger(__name__)

SUPPORTED_SHELLS = ("bash", "sh", "dash", "ksh")
DEFAULT_SHELL = "bash"
DEFAULT_TIMEOUT = 30
PLACEHOLDER_PREFIX = "GITHUB_ACTION_PLACEHOLDER_"
INTERPOLATION_PATTERN = re.compile(r"\$\{\{\s*(.*?)\s*\}\}")
REMEDIATION = "Make sure it's installed and configure `shellcheck_bin` appropriately."


def identify_shell(script: str) -> Optional[str]:
    """Pick the shell from a shebang; scripts without one are bash.

    Returns None for a shebang naming an unsupported shell.
    """
    first_line = script.splitlines()[0] if script else ""
    if not first_line.startswith("#!"):
        return DEFAULT_SHELL

    for shell in SUPPORTED_SHELLS:
        if first_line.startswith(f"#!/bin/{shell}"):
            return shell
    return None


def sanitize_script(script: str) -> tuple[str, dict[str, str]]:
    """Replace ``${{ ... }}`` interpolations with shell variables shellcheck understands."""
    mapping: dict[str, str] = {}

    def replace(match: re.Match[str]) -> str:
        inner = match.group(1).strip()
        placeholder = PLACEHOLDER_PREFIX + re.sub(r"[^a-zA-Z0-9]", "_", inner).upper()
        mapping[placeholder] = f"${{{{ {inner} }}}}"
        return f"${placeholder}"

    return INTERPOLATION_PATTERN.sub(replace, script), mapping


def unsanitize_output(output: str, mapping: dict[str, str]) -> str:
    """Put the original ``${{ ... }}`` text back into shellcheck output."""
    # longest first, so GITHUB_REF doesn't clobber GITHUB_REF_NAME
    for placeholder in sorted(mapping, key=len, reverse=True):
        output = output.replace(f"${placeholder}", mapping[placeholder])
        output = output.replace(placeholder, mapping[placeholder])
    return output


class Shellcheck(Rule):
    description = (
        "This shell script did not pass Shellcheck.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#shellcheck"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_step(self.shellcheck)

    @property
    def timeout(self) -> float:
        return self.configuration.get("shellcheck_timeout", DEFAULT_TIMEOUT)

    def find_binary(self) -> str:
        """Resolve the shellcheck executable.

        Raises:
            MissingExternalTool: If no usable binary is found
        """
        configured = self.configuration.get("shellcheck_bin")
        if configured:
            if os.path.isfile(configured) and os.access(configured, os.X_OK):
                return configured
            raise MissingExternalTool("shellcheck", configured, REMEDIATION)

        found = shutil.which("shellcheck")
        if found is None:
            raise MissingExternalTool("shellcheck", "not on PATH", REMEDIATION)
        return found

    def shellcheck(
        self, workflow: Workflow, job: Optional[Job], step: Optional[Step]
    ) -> Optional[Violation]:
        binary = self.find_binary()

        if step is None or step.run is None:
            return None

        shell = step.shell if step.shell is not None else identify_shell(step.run)
        if shell is None:
            logger.debug("Skipping step %d: unsupported shell", step.index)
            return None

        result = self.analyze_script(binary, step.run, str(shell))
        if result is None:
            return None

        exit_status, stdout = result
        if exit_status != 1:
            return None

        run_key = step.node.key("run")
        return Violation(
            line=run_key.line if run_key is not None else step.line,
            description=f"Shellcheck found some issues with this shell script:\n{stdout}",
        )

    def analyze_script(self, binary: str, script: str, shell: str) -> Optional[tuple[int, str]]:
        """Run shellcheck on a script and return (exit status, output)."""
        sanitized, mapping = sanitize_script(script)
        try:
            completed = subprocess.run(
                [binary, "-", "-s", shell],
                input=sanitized,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except OSError as e:
            raise MissingExternalTool("shellcheck", binary, REMEDIATION) from e
        except subprocess.TimeoutExpired:
            logger.warning("shellcheck timed out after %ss, skipping script", self.timeout)
            return None

        if completed.stderr:
            logger.debug("shellcheck stderr: %s", unsanitize_output(completed.stderr, mapping))
        return completed.returncode, unsanitize_output(completed.stdout, mapping)
