"""
Configuration for the declaration generator.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GeneratorConfig:
    """Configuration options for generating one package."""

    # Name of the generated package, written in each file's header
    package_name: str = ""

    # Module path of the generated package; types defined elsewhere are imported
    import_path: str = ""

    # Target language ("go" or "python")
    language: str = "go"

    # Roll back every reservation of a strict declare that fails part way
    atomic_declare: bool = True

    # Names that may be declared once per file (None = the target's defaults)
    reentrant_names: list[str] | None = None

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary, ignoring unknown keys."""
        config = GeneratorConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "package_name": self.package_name,
            "import_path": self.import_path,
            "language": self.language,
            "atomic_declare": self.atomic_declare,
            "reentrant_names": self.reentrant_names,
        }
