"""
Step catalog — the ordered list of steps for a provisioning run.

    os update → uv → Homebrew → packages (Brewfile, or formulae / casks /
    App Store / VS Code) → Node.js → npm globals → extras → Homebrew
    maintenance → system settings → Dock → Git identity → reboot

Policy per step follows what a failure means for the rest of the run:
single package installs, settings and Dock tweaks are optional; the
toolchain steps everything else depends on are mandatory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from macprovision.core.models.config import DockConfig, Extra, ProvisionConfig
from macprovision.core.models.step import Answer, Step
from macprovision.core.services import actions
from macprovision.core.services.actions import ProvisionContext

logger = logging.getLogger(__name__)

GROUP_APPSTORE = "appstore"
GROUP_VSCODE = "vscode"
GROUP_SETTINGS = "settings"
GROUP_DOCK = "dock"
GROUP_REBOOT = "reboot"


def build_steps(
    config: ProvisionConfig,
    ctx: ProvisionContext,
    *,
    include_reboot: bool = True,
) -> list[Step]:
    """Build the full ordered step list for ``config``.

    Args:
        config: Loaded provisioning configuration.
        ctx: Runner, prompt and environment shared by all actions.
        include_reboot: Whether to end the run with a reboot step.
            Also disabled by ``reboot: false`` in the config.
    """
    steps: list[Step] = []
    steps += _bootstrap_steps(ctx)
    steps += _package_steps(config, ctx)
    steps += _node_steps(config, ctx)
    for extra in config.extras:
        steps += _extra_steps(extra, ctx)
    steps += _maintenance_steps(config, ctx)
    steps += _settings_steps(config, ctx)
    steps += _dock_steps(config.dock, ctx)
    steps.append(
        Step(
            name="git-identity",
            description="Set git user.name / user.email",
            action=actions.git_identity(ctx, color_ui=config.git.color_ui),
        )
    )
    if include_reboot and config.reboot:
        steps.append(
            Step(
                name="reboot",
                description="Reboot the machine",
                action=actions.reboot(ctx),
                requires_confirmation=True,
                question="Reboot now?",
                default_answer=Answer.YES,
                confirm_group=GROUP_REBOOT,
            )
        )

    logger.debug("Built %d steps", len(steps))
    return steps


def _bootstrap_steps(ctx: ProvisionContext) -> list[Step]:
    return [
        Step(
            name="software-update",
            description="Install all available macOS updates",
            action=actions.command(ctx, ["sudo", "softwareupdate", "-i", "-a"], interactive=True),
        ),
        Step(name="install-uv", description="Install uv", action=actions.install_uv(ctx)),
        Step(
            name="install-homebrew",
            description="Install Homebrew unless present",
            action=actions.install_homebrew(ctx),
        ),
        Step(
            name="homebrew-shellenv",
            description="Load Homebrew into ~/.zprofile and this run",
            action=actions.homebrew_shellenv(ctx),
        ),
        Step(name="homebrew-update", description="brew update", action=actions.homebrew_update(ctx)),
        Step(
            name="homebrew-doctor",
            description="brew doctor",
            action=actions.command(ctx, ["brew", "doctor"]),
            optional=True,
        ),
    ]


def _package_steps(config: ProvisionConfig, ctx: ProvisionContext) -> list[Step]:
    if config.brewfile and Path(config.brewfile).is_file():
        logger.info("Brewfile found at %s, using it for packages", config.brewfile)
        return [
            Step(
                name="brew-bundle",
                description=f"brew bundle ({config.brewfile})",
                action=actions.brew_bundle(ctx, config.brewfile),
            )
        ]

    steps = [
        Step(
            name=f"formula:{f}",
            description=f"brew install {f}",
            action=actions.brew_install(ctx, f),
            optional=True,
        )
        for f in config.formulae
    ]
    steps += [
        Step(
            name=f"cask:{c}",
            description=f"brew install --cask {c}",
            action=actions.brew_install(ctx, c, cask=True),
            optional=True,
        )
        for c in config.casks
    ]

    if config.appstore:
        appstore_q = "Install apps from App Store?"
        steps.append(
            Step(
                name="install-mas",
                description="brew install mas",
                action=actions.brew_install(ctx, "mas"),
                requires_confirmation=True,
                question=appstore_q,
                confirm_group=GROUP_APPSTORE,
            )
        )
        steps += [
            Step(
                name=f"appstore:{app}",
                description=f"mas install {app}",
                action=actions.mas_install(ctx, app),
                optional=True,
                requires_confirmation=True,
                question=appstore_q,
                confirm_group=GROUP_APPSTORE,
            )
            for app in config.appstore
        ]

    steps += [
        Step(
            name=f"vscode:{ext}",
            description=f"code --install-extension {ext}",
            action=actions.vscode_extension(ctx, ext),
            optional=True,
            requires_confirmation=True,
            question="Install VSCode Extensions?",
            confirm_group=GROUP_VSCODE,
        )
        for ext in config.vscode
    ]
    return steps


def _node_steps(config: ProvisionConfig, ctx: ProvisionContext) -> list[Step]:
    steps = [
        Step(
            name="install-node",
            description="Install Node.js via NVM or Homebrew unless present",
            action=actions.install_node(ctx),
        )
    ]
    if config.npm_packages:
        steps.append(
            Step(
                name="npm-globals",
                description="npm install -g " + " ".join(config.npm_packages),
                action=actions.npm_globals(ctx, config.npm_packages),
            )
        )
    return steps


def _extra_steps(extra: Extra, ctx: ProvisionContext) -> list[Step]:
    """All steps of one optional bundle, gated by a single question."""
    gate = {
        "requires_confirmation": True,
        "question": extra.question or f"Install {extra.name}?",
        "confirm_group": extra.name,
        "optional": extra.optional,
    }

    steps = [
        Step(
            name=f"{extra.name}:tap:{t}",
            description=f"brew tap {t}",
            action=actions.command(ctx, ["brew", "tap", t]),
            **gate,
        )
        for t in extra.taps
    ]
    steps += [
        Step(
            name=f"{extra.name}:formula:{f}",
            description=f"brew install {f}",
            action=actions.brew_install(ctx, f),
            **gate,
        )
        for f in extra.formulae
    ]
    steps += [
        Step(
            name=f"{extra.name}:cask:{c}",
            description=f"brew install --cask {c}",
            action=actions.brew_install(ctx, c, cask=True),
            **gate,
        )
        for c in extra.casks
    ]
    if extra.env:
        steps.append(
            Step(
                name=f"{extra.name}:env",
                description="export " + " ".join(extra.env),
                action=actions.export_env(ctx, extra.env),
                **gate,
            )
        )

    # A followup-only extra has no group question to wait on
    parent = extra.name if steps else None
    for followup in extra.followups:
        steps.append(
            Step(
                name=f"{extra.name}:{followup.name}",
                description=" && ".join(" ".join(c) for c in followup.commands),
                action=actions.commands(ctx, followup.commands, interactive=followup.interactive),
                optional=extra.optional,
                requires_confirmation=True,
                question=followup.question or f"Set up {followup.name} now?",
                within=parent,
            )
        )
    return steps


def _maintenance_steps(config: ProvisionConfig, ctx: ProvisionContext) -> list[Step]:
    return [
        Step(
            name="homebrew-maintenance",
            description="brew update, upgrade, cleanup",
            action=actions.commands(
                ctx,
                [["brew", "update"], ["brew", "upgrade"], ["brew", "cleanup"]],
            ),
        ),
        Step(
            name="launch-agents-dir",
            description="mkdir -p ~/Library/LaunchAgents",
            action=actions.ensure_dir(ctx, ctx.home / "Library" / "LaunchAgents"),
        ),
        Step(
            name="homebrew-autoupdate",
            description=f"brew autoupdate every {config.update_frequency}s",
            action=actions.homebrew_autoupdate(ctx, config.update_frequency),
        ),
    ]


def _settings_steps(config: ProvisionConfig, ctx: ProvisionContext) -> list[Step]:
    return [
        Step(
            name=f"setting:{setting.label}",
            description=" ".join(setting.argv()),
            action=actions.command(ctx, setting.argv()),
            optional=True,
            requires_confirmation=True,
            question="Configure default system settings?",
            default_answer=Answer.YES,
            confirm_group=GROUP_SETTINGS,
        )
        for setting in config.settings
    ]


def _dock_steps(dock: DockConfig, ctx: ProvisionContext) -> list[Step]:
    if dock.empty:
        return []

    gate = {
        "requires_confirmation": True,
        "question": "Apply Dock settings?",
        "confirm_group": GROUP_DOCK,
    }
    steps = [
        Step(
            name="install-dockutil",
            description="brew install dockutil",
            action=actions.brew_install(ctx, "dockutil"),
            **gate,
        )
    ]
    steps += [
        Step(
            name=f"dock:replace:{r.replacing}",
            description=f"dockutil --add {r.add} --replacing {r.replacing}",
            action=actions.command(ctx, ["dockutil", "--add", r.add, "--replacing", r.replacing]),
            optional=True,
            **gate,
        )
        for r in dock.replace
    ]
    steps += [
        Step(
            name=f"dock:add:{app}",
            description=f"dockutil --add {app}",
            action=actions.command(ctx, ["dockutil", "--add", app]),
            optional=True,
            **gate,
        )
        for app in dock.add
    ]
    steps += [
        Step(
            name=f"dock:remove:{app}",
            description=f"dockutil --remove {app}",
            action=actions.command(ctx, ["dockutil", "--remove", app]),
            optional=True,
            **gate,
        )
        for app in dock.remove
    ]
    return steps
