"""
Application analysis record and the closed set of deployment strategies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Strategy(str, Enum):
    """Deployment topology chosen for an application."""
    VM = "vm"
    KUBERNETES = "kubernetes"
    SERVERLESS = "serverless"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Strategy"]:
        """Map a free-form label ("EKS", "lambda", "ec2", ...) onto a strategy."""
        if not value:
            return None
        if isinstance(value, Strategy):
            return value
        return STRATEGY_ALIASES.get(str(value).strip().lower())

    def __str__(self) -> str:
        return self.value


STRATEGY_ALIASES = {
    "vm": Strategy.VM,
    "ec2": Strategy.VM,
    "virtual machine": Strategy.VM,
    "kubernetes": Strategy.KUBERNETES,
    "k8s": Strategy.KUBERNETES,
    "eks": Strategy.KUBERNETES,
    "serverless": Strategy.SERVERLESS,
    "lambda": Strategy.SERVERLESS,
}


@dataclass(frozen=True)
class Analysis:
    """Repository analysis produced by the analyzer; read-only to the engine."""
    framework: str = "unknown"
    language: str = "unknown"
    dependencies: Tuple[str, ...] = ()
    port: int = 0
    start_command: str = "unknown"
    has_dockerfile: bool = False
    has_docker_compose: bool = False

    # Context carried through for plan rendering and suggestions
    repo_url: str = ""
    app_dir: str = ""
    package_manager: str = ""
    env_vars: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def dependency_count(self) -> int:
        return len(self.dependencies)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Analysis":
        """Create from a dictionary, tolerating missing keys."""
        deps = data.get("dependencies") or []
        return cls(
            framework=str(data.get("framework") or "unknown"),
            language=str(data.get("language") or "unknown"),
            dependencies=tuple(str(d) for d in deps),
            port=int(data.get("port") or 0),
            start_command=str(data.get("start_command") or "unknown"),
            has_dockerfile=bool(data.get("has_dockerfile", False)),
            has_docker_compose=bool(data.get("has_docker_compose", False)),
            repo_url=str(data.get("repo_url") or ""),
            app_dir=str(data.get("app_dir") or ""),
            package_manager=str(data.get("package_manager") or ""),
            env_vars=dict(data.get("env_vars") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "framework": self.framework,
            "language": self.language,
            "dependencies": list(self.dependencies),
            "port": self.port,
            "start_command": self.start_command,
            "has_dockerfile": self.has_dockerfile,
            "has_docker_compose": self.has_docker_compose,
            "repo_url": self.repo_url,
            "app_dir": self.app_dir,
            "package_manager": self.package_manager,
            "env_vars": dict(self.env_vars),
        }
