"""
Step actions — turn configuration directives into callables.

Every action here is a zero-argument closure over a ProvisionContext
and returns a Receipt. All side effects, file edits included, go
through the context's CommandRunner so that ``--mock`` and
``--dry-run`` touch nothing on the host.

Idempotence lives here, not in the pipeline: Homebrew is installed only
when missing, the shellenv line is appended to ~/.zprofile only once,
Node.js is left alone when already on PATH.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from macprovision.adapters.base import CommandRunner
from macprovision.core.models.action import Receipt
from macprovision.core.prompt import Prompt

logger = logging.getLogger(__name__)

Action = Callable[[], Receipt]

# ── Installer locations ─────────────────────────────────────────

HOMEBREW_PREFIX = "/opt/homebrew"
BREW_BIN = f"{HOMEBREW_PREFIX}/bin/brew"
HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
UV_INSTALL_URL = "https://astral.sh/uv/install.sh"
NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.39.7/install.sh"

SHELLENV_LINE = f'eval "$({BREW_BIN} shellenv)"'

# Appends $1 to file $2 unless the exact line is already there
_APPEND_ONCE = 'grep -qxF -- "$1" "$2" 2>/dev/null || printf "%s\\n" "$1" >> "$2"'

_NVM_SETUP = (
    '. "$NVM_DIR/nvm.sh" && nvm install --lts && nvm install node '
    "&& nvm alias default node && nvm use default"
)
_NPM_VIA_NVM = '. "$NVM_DIR/nvm.sh" && npm install -g "$@"'


@dataclass
class ProvisionContext:
    """What every action needs: a runner, a prompt and the run's env.

    ``env`` plays the part of the installer shell's exported variables:
    values set by one step (Homebrew's PATH, HOMEBREW_NO_INSTALL_CLEANUP,
    DOTNET_ROOT) are passed to every later command.
    """

    runner: CommandRunner
    prompt: Prompt
    env: dict[str, str] = field(default_factory=dict)
    home: Path = field(default_factory=Path.home)

    def run(self, argv: Sequence[str], *, interactive: bool = False) -> Receipt:
        return self.runner.run(argv, env=self.env, interactive=interactive)

    def has(self, program: str) -> bool:
        return self.runner.is_available(program, env=self.env)

    def export(self, name: str, value: str) -> None:
        self.env[name] = value
        logger.debug("export %s=%s", name, value)

    def getenv(self, name: str, default: str | None = None) -> str | None:
        if name in self.env:
            return self.env[name]
        return os.environ.get(name, default)


def run_sequence(ctx: ProvisionContext, commands: Sequence[Sequence[str]], *, interactive: bool = False) -> Receipt:
    """Run commands in order; stop at and return the first failure."""
    last = Receipt.success(runner=ctx.runner.name)
    outputs: list[str] = []
    for argv in commands:
        last = ctx.run(argv, interactive=interactive)
        if not last.ok:
            return last
        if last.output:
            outputs.append(last.output)
    return last.model_copy(update={"output": "\n".join(outputs)})


# ── Generic actions ─────────────────────────────────────────────


def command(ctx: ProvisionContext, argv: Sequence[str], *, interactive: bool = False) -> Action:
    cmd = list(argv)

    def _action() -> Receipt:
        return ctx.run(cmd, interactive=interactive)

    return _action


def commands(ctx: ProvisionContext, argvs: Sequence[Sequence[str]], *, interactive: bool = False) -> Action:
    cmds = [list(a) for a in argvs]

    def _action() -> Receipt:
        return run_sequence(ctx, cmds, interactive=interactive)

    return _action


def export_env(ctx: ProvisionContext, values: Mapping[str, str]) -> Action:
    """Export variables to every later command (``$VAR`` references expand)."""
    pairs = dict(values)

    def _action() -> Receipt:
        for name, value in pairs.items():
            ctx.export(name, os.path.expandvars(value))
        return Receipt.success(output=", ".join(f"{k}={ctx.env[k]}" for k in pairs))

    return _action


def ensure_dir(ctx: ProvisionContext, path: Path) -> Action:
    return command(ctx, ["mkdir", "-p", str(path)])


# ── Installers ──────────────────────────────────────────────────


def install_uv(ctx: ProvisionContext) -> Action:
    return command(ctx, ["/bin/sh", "-c", f"curl -LsSf {UV_INSTALL_URL} | sh"])


def install_homebrew(ctx: ProvisionContext) -> Action:
    def _action() -> Receipt:
        if ctx.has("brew"):
            return Receipt.success(output="Homebrew already installed")
        return ctx.runner.run(
            ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'],
            env={**ctx.env, "NONINTERACTIVE": "1"},
            interactive=True,
        )

    return _action


def homebrew_shellenv(ctx: ProvisionContext) -> Action:
    """Persist Homebrew's shell setup in ~/.zprofile and apply it to this run."""
    zprofile = ctx.home / ".zprofile"

    def _action() -> Receipt:
        receipt = ctx.run(["/bin/sh", "-c", _APPEND_ONCE, "append-once", SHELLENV_LINE, str(zprofile)])
        if receipt.failed:
            return receipt

        path = ctx.getenv("PATH", "") or ""
        ctx.export("HOMEBREW_PREFIX", HOMEBREW_PREFIX)
        ctx.export("HOMEBREW_CELLAR", f"{HOMEBREW_PREFIX}/Cellar")
        ctx.export("HOMEBREW_REPOSITORY", HOMEBREW_PREFIX)
        ctx.export("PATH", f"{HOMEBREW_PREFIX}/bin:{HOMEBREW_PREFIX}/sbin" + (f":{path}" if path else ""))
        return Receipt.success(output=f"Homebrew environment loaded ({zprofile})")

    return _action


def homebrew_update(ctx: ProvisionContext) -> Action:
    def _action() -> Receipt:
        receipt = ctx.run(["brew", "update"])
        if receipt.ok:
            ctx.export("HOMEBREW_NO_INSTALL_CLEANUP", "1")
        return receipt

    return _action


def brew_install(ctx: ProvisionContext, package: str, *, cask: bool = False) -> Action:
    argv = ["brew", "install", "--cask", package] if cask else ["brew", "install", package]
    return command(ctx, argv)


def brew_bundle(ctx: ProvisionContext, brewfile: str) -> Action:
    return command(ctx, ["brew", "bundle", f"--file={brewfile}"])


def mas_install(ctx: ProvisionContext, app_id: str) -> Action:
    return command(ctx, ["mas", "install", app_id])


def vscode_extension(ctx: ProvisionContext, extension: str) -> Action:
    return command(ctx, ["code", "--install-extension", extension])


def homebrew_autoupdate(ctx: ProvisionContext, frequency: int) -> Action:
    return commands(
        ctx,
        [
            ["brew", "tap", "homebrew/autoupdate"],
            [
                "brew", "autoupdate", "start", str(frequency),
                "--upgrade", "--cleanup", "--immediate", "--sudo",
            ],
        ],
    )


# ── Node.js ─────────────────────────────────────────────────────


def nvm_dir(ctx: ProvisionContext) -> Path:
    """$XDG_CONFIG_HOME/nvm when XDG_CONFIG_HOME is set, else ~/.nvm."""
    xdg = ctx.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "nvm"
    return ctx.home / ".nvm"


def install_node(ctx: ProvisionContext) -> Action:
    """Install Node.js via NVM (default) or Homebrew, unless already present."""

    def _action() -> Receipt:
        if ctx.has("node"):
            version = ctx.run(["node", "--version"])
            label = version.output if version.ok and version.output else "present"
            return Receipt.success(output=f"Node.js already installed: {label}")

        choice = ctx.prompt.ask("Install Node.js via NVM or Brew? [N/b]").lower()
        if choice in ("", "n", "nvm"):
            ctx.export("NVM_DIR", str(nvm_dir(ctx)))
            return run_sequence(
                ctx,
                [
                    ["/bin/bash", "-c", f"curl -o- {NVM_INSTALL_URL} | bash"],
                    ["/bin/bash", "-c", _NVM_SETUP],
                ],
            )
        if choice in ("b", "brew"):
            return ctx.run(["brew", "install", "node"])
        return Receipt.skip(reason=f"no Node.js installer chosen ({choice!r})")

    return _action


def npm_globals(ctx: ProvisionContext, packages: Sequence[str]) -> Action:
    pkgs = list(packages)

    def _action() -> Receipt:
        nvm_script = Path(ctx.getenv("NVM_DIR") or nvm_dir(ctx)) / "nvm.sh"
        if "NVM_DIR" in ctx.env or nvm_script.is_file():
            ctx.export("NVM_DIR", str(nvm_script.parent))
            return ctx.run(["/bin/bash", "-c", _NPM_VIA_NVM, "npm-globals", *pkgs])
        return ctx.run(["npm", "install", "-g", *pkgs])

    return _action


# ── Git & reboot ────────────────────────────────────────────────


def git_identity(ctx: ProvisionContext, color_ui: bool = True) -> Action:
    """Ask for the Git user name and email and set them globally.

    Blank answers leave that key untouched.
    """

    def _action() -> Receipt:
        name = ctx.prompt.ask("Please enter your git username:")
        email = ctx.prompt.ask("Please enter your git email:")

        cmds: list[list[str]] = []
        if name:
            cmds.append(["git", "config", "--global", "user.name", name])
        if email:
            cmds.append(["git", "config", "--global", "user.email", email])
        if color_ui:
            cmds.append(["git", "config", "--global", "color.ui", "true"])
        if not cmds:
            return Receipt.skip(reason="no git identity given")

        receipt = run_sequence(ctx, cmds)
        if receipt.ok and not (name or email):
            return Receipt.skip(reason="no git identity given (color.ui set)")
        return receipt

    return _action


def reboot(ctx: ProvisionContext) -> Action:
    return command(ctx, ["sudo", "reboot"], interactive=True)
