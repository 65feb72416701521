"""
ProvisionConfig — the declarative input of a run, loaded from provision.yml.

Everything the pipeline installs or toggles is listed here as plain
identifiers or structured directives. The pipeline never interprets
them; the step catalog turns each one into an action.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

# Homebrew autoupdate interval, in seconds (12 hours)
DEFAULT_UPDATE_FREQUENCY = 43200


class DefaultsWrite(BaseModel):
    """A ``defaults write`` preference toggle."""

    domain: str
    key: str
    type: str = "bool"     # bool, int, float, string
    value: str | int | float | bool
    current_host: bool = False

    def argv(self) -> list[str]:
        value = self.value
        if isinstance(value, bool):
            value = "true" if value else "false"
        cmd = ["defaults"]
        if self.current_host:
            cmd.append("-currentHost")
        return cmd + ["write", self.domain, self.key, f"-{self.type}", str(value)]


class Setting(BaseModel):
    """One system setting: either a defaults directive or a raw argv."""

    name: str = ""
    defaults: DefaultsWrite | None = None
    command: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _exactly_one(self) -> Setting:
        if (self.defaults is None) == (not self.command):
            raise ValueError("a setting needs exactly one of 'defaults' or 'command'")
        return self

    def argv(self) -> list[str]:
        if self.defaults is not None:
            return self.defaults.argv()
        return list(self.command)

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.defaults is not None:
            return f"{self.defaults.domain}.{self.defaults.key}"
        return " ".join(self.command)


class DockReplacement(BaseModel):
    add: str
    replacing: str


class DockConfig(BaseModel):
    """Dock layout directives, applied replace → add → remove."""

    add: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)
    replace: list[DockReplacement] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.add or self.remove or self.replace)


class Followup(BaseModel):
    """A nested question inside an extra, e.g. "Set up MySQL now?"."""

    name: str
    question: str = ""
    commands: list[list[str]] = Field(default_factory=list)
    interactive: bool = False


class Extra(BaseModel):
    """An optional bundle offered behind a single yes/no question."""

    name: str
    question: str = ""
    taps: list[str] = Field(default_factory=list)
    formulae: list[str] = Field(default_factory=list)
    casks: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    optional: bool = False
    followups: list[Followup] = Field(default_factory=list)


class GitConfig(BaseModel):
    color_ui: bool = True


class ProvisionConfig(BaseModel):
    """Root configuration model — loaded from provision.yml."""

    version: int = 1

    formulae: list[str] = Field(default_factory=list)
    casks: list[str] = Field(default_factory=list)
    appstore: list[str] = Field(default_factory=list)
    vscode: list[str] = Field(default_factory=list)
    npm_packages: list[str] = Field(default_factory=list)
    brewfile: str | None = None

    settings: list[Setting] = Field(default_factory=list)
    dock: DockConfig = Field(default_factory=DockConfig)
    extras: list[Extra] = Field(default_factory=list)
    git: GitConfig = Field(default_factory=GitConfig)

    update_frequency: int = Field(default=DEFAULT_UPDATE_FREQUENCY, gt=0)
    reboot: bool = True

    @model_validator(mode="after")
    def _unique_extras(self) -> ProvisionConfig:
        names = [e.name for e in self.extras]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate extra names: {', '.join(dupes)}")
        return self
