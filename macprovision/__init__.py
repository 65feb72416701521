"""macprovision — provision a macOS workstation from a declarative config."""

__version__ = "0.1.0"
