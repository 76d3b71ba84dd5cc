"""
Deterministic heuristics over an Analysis.

None of these functions raise; ``fallback_strategy`` always returns a
strategy so the resolver can never end without a decision.
"""

from typing import List, Union

from scia.analysis import Analysis, Strategy

STATELESS_FRAMEWORKS = ("fastapi", "express")
STATEFUL_DEPENDENCIES = ("django", "rails", "postgres", "mysql", "mongodb", "redis", "sqlite")
HEAVY_FRAMEWORKS = ("django", "rails", "nextjs")
STATEFUL_FRAMEWORKS = ("django", "rails")


def is_stateless(analysis: Analysis) -> bool:
    """
    Stateless framework signature (FastAPI, Express).

    The framework decides; stateful dependencies only matter for other
    frameworks, which are never considered stateless.
    """
    framework = analysis.framework.lower()
    return any(fw in framework for fw in STATELESS_FRAMEWORKS)


def has_stateful_dependencies(analysis: Analysis) -> bool:
    for dep in analysis.dependencies:
        dep_lower = dep.lower()
        if any(stateful in dep_lower for stateful in STATEFUL_DEPENDENCIES):
            return True
    return False


def fallback_strategy(analysis: Analysis) -> Strategy:
    """Heuristic strategy used when the rules do not match and the model gives no answer."""
    deps = analysis.dependency_count

    if analysis.has_docker_compose:
        return Strategy.KUBERNETES
    if is_stateless(analysis) and deps < 5:
        return Strategy.SERVERLESS
    if deps > 20:
        return Strategy.KUBERNETES
    if analysis.has_dockerfile and deps < 15:
        return Strategy.VM
    return Strategy.VM


def suggest_instance_type(analysis: Analysis) -> str:
    """EC2 instance type: t3.small for heavy frameworks or large trees, else t3.micro."""
    if analysis.framework.lower() in HEAVY_FRAMEWORKS or analysis.dependency_count > 20:
        return "t3.small"
    return "t3.micro"


def suggest_optimizations(analysis: Analysis, strategy: Union[Strategy, str]) -> List[str]:
    strategy = Strategy.parse(strategy)
    start_command = analysis.start_command.lower()
    suggestions = []

    if strategy == Strategy.VM:
        if (analysis.language.lower() == "python"
                and "gunicorn" not in start_command
                and "uvicorn" not in start_command):
            suggestions.append(
                "Consider using a production server (Gunicorn/Uvicorn) instead of development server")
        if analysis.port not in (80, 443):
            suggestions.append(
                f"Application runs on port {analysis.port} - consider using a reverse proxy (Nginx) on port 80/443")

    elif strategy == Strategy.KUBERNETES:
        if not analysis.has_dockerfile:
            suggestions.append("Create a Dockerfile for containerization")
        suggestions.append("Configure resource limits (CPU/memory) in Kubernetes manifests")
        suggestions.append("Set up horizontal pod autoscaling (HPA) for production")
        suggestions.append("Configure liveness and readiness probes")

    elif strategy == Strategy.SERVERLESS:
        if analysis.dependency_count > 10:
            suggestions.append(
                "High dependency count may increase cold start time - consider Lambda layers")
        suggestions.append("Optimize for cold start by minimizing initialization code")
        suggestions.append("Consider provisioned concurrency for latency-sensitive workloads")

    if not analysis.env_vars:
        suggestions.append("No .env.example found - ensure environment variables are documented")

    if not analysis.has_dockerfile and strategy != Strategy.VM:
        suggestions.append("Creating Dockerfile recommended for consistency across environments")

    return suggestions


def validate_deployment_requirements(analysis: Analysis, strategy: Union[Strategy, str]) -> List[str]:
    """Warnings about a strategy that may not fit the analysed application."""
    strategy = Strategy.parse(strategy)
    warnings = []

    if strategy == Strategy.SERVERLESS:
        if analysis.has_docker_compose:
            warnings.append("docker-compose detected but serverless recommended - this may not work")
        if analysis.framework.lower() in STATEFUL_FRAMEWORKS:
            warnings.append(
                f"{analysis.framework} is typically stateful - serverless may require significant modifications")
        if has_stateful_dependencies(analysis):
            warnings.append("Stateful dependencies detected - serverless functions need managed external storage")

    elif strategy == Strategy.KUBERNETES:
        if not analysis.has_dockerfile and not analysis.has_docker_compose:
            warnings.append("Kubernetes recommended but no Dockerfile found - containerization needed")

    elif strategy == Strategy.VM:
        if analysis.dependency_count > 30:
            warnings.append("High dependency count - consider Kubernetes for better management")

    if analysis.framework == "unknown":
        warnings.append("Unable to detect framework - deployment may require manual configuration")
    if analysis.start_command == "unknown":
        warnings.append("Unable to detect start command - manual configuration required")

    return warnings
