"""
Config check use case — validate provision.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from macprovision.core.config.loader import find_config_file, load_config
from macprovision.core.errors import ConfigError
from macprovision.core.models.config import ProvisionConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ProvisionConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        config = self.config
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "formulae": len(config.formulae) if config else 0,
            "casks": len(config.casks) if config else 0,
            "settings": len(config.settings) if config else 0,
            "extras": [e.name for e in config.extras] if config else [],
        }


def _duplicates(items: list[str]) -> list[str]:
    return sorted({i for i in items if items.count(i) > 1})


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate provisioning configuration and report issues.

    Args:
        config_path: Optional explicit path to provision.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append("No provision.yml found.")
        return result
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Duplicates would give two steps the same name
    for label, items in (
        ("formulae", config.formulae),
        ("casks", config.casks),
        ("App Store apps", config.appstore),
        ("VS Code extensions", config.vscode),
    ):
        dupes = _duplicates(items)
        if dupes:
            result.errors.append(f"Duplicate {label}: {', '.join(dupes)}")

    setting_dupes = _duplicates([s.label for s in config.settings])
    if setting_dupes:
        result.errors.append(f"Duplicate settings: {', '.join(setting_dupes)}")

    if config.brewfile:
        if Path(config.brewfile).is_file():
            if config.formulae or config.casks:
                result.warnings.append(
                    "Brewfile present: 'formulae' and 'casks' lists will be ignored."
                )
        else:
            result.warnings.append(f"Brewfile not found: {config.brewfile}")

    if not (config.brewfile or config.formulae or config.casks):
        result.warnings.append("No packages defined. Only the base toolchain will be installed.")

    for extra in config.extras:
        if not (extra.taps or extra.formulae or extra.casks or extra.env or extra.followups):
            result.warnings.append(f"Extra '{extra.name}' installs nothing.")

    result.valid = len(result.errors) == 0
    return result
