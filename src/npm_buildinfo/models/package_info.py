"""Identity of the npm module being built."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PackageInfo:
    """Name, version and scope of a package, as read from package.json."""

    name: str
    version: str
    scope: str = ""

    @classmethod
    def from_full_name(cls, full_name: str, version: str) -> PackageInfo:
        """Split a leading ``@scope/`` off *full_name*."""
        if full_name.startswith("@") and "/" in full_name:
            segments = full_name.split("/")
            return cls(name=segments[1], version=version, scope=segments[0])
        return cls(name=full_name, version=version)

    def build_info_module_id(self) -> str:
        name_base = f"{self.name}:{self.version}"
        if not self.scope:
            return name_base
        return f"{self.scope.removeprefix('@')}:{name_base}"

    def deploy_path(self) -> str:
        file_name = f"{self.name}-{self.version}.tgz"
        if not self.scope:
            return f"{self.name}/-/{file_name}"
        return f"{self.scope}/{self.name}/-/{file_name}"

    def full_name(self) -> str:
        if not self.scope:
            return self.name
        return f"{self.scope}/{self.name}"

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "version": self.version,
            "scope": self.scope,
        }
