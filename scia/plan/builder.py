"""
Per-strategy resource list describing what a deployment will create.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scia.analysis import Analysis, Strategy
from scia.nlp.schema import DeploymentConfig

DEFAULT_APP_NAME = "scia-app"

LAMBDA_RUNTIMES = {
    "python": "python3.12",
    "javascript": "nodejs20.x",
    "typescript": "nodejs20.x",
    "go": "provided.al2023",
}

CONTAINER_IMAGES = {
    "python": "python:3.12-slim",
    "javascript": "node:20-alpine",
    "typescript": "node:20-alpine",
    "go": "golang:1.23-alpine",
}


@dataclass
class ResourceConfig:
    """A single resource to be created."""
    type: str
    name: str
    parameters: Dict[str, str] = field(default_factory=dict)
    important: bool = False

    def add(self, key: str, value: Any) -> "ResourceConfig":
        self.parameters[key] = str(value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "parameters": dict(self.parameters),
            "important": self.important,
        }


@dataclass
class DeploymentPlan:
    """Strategy, region and the resources a deployment will create."""
    strategy: Strategy
    region: str
    app_name: str
    resources: List[ResourceConfig] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "region": self.region,
            "app_name": self.app_name,
            "resources": [r.to_dict() for r in self.resources],
        }


def extract_app_name(repo_source: Optional[str]) -> str:
    """
    Application name from a repository URL or path.

    ``https://github.com/org/my_app.git`` -> ``my-app``
    """
    source = (repo_source or "").strip()
    if source.endswith(".git"):
        source = source[:-4]
    source = source.rstrip("/")
    if "/" not in source:
        return DEFAULT_APP_NAME
    name = source.rsplit("/", 1)[1]
    return name.replace("_", "-") if name else DEFAULT_APP_NAME


def detect_runtime(language: str) -> str:
    return LAMBDA_RUNTIMES.get(language.lower(), "python3.12")


def detect_container_image(language: str) -> str:
    return CONTAINER_IMAGES.get(language.lower(), "nginx:alpine")


def build_deployment_plan(
    strategy: Strategy,
    region: str,
    app_name: str,
    analysis: Analysis,
    config: DeploymentConfig,
) -> DeploymentPlan:
    """
    Build the resource list for a strategy.

    Args:
        strategy: Resolved strategy (unknown values fall back to VM resources)
        region: Target region
        app_name: Application name used in resource names
        analysis: Application analysis
        config: Current plan configuration (sizing fields)

    Returns:
        DeploymentPlan
    """
    builders = {
        Strategy.VM: _ec2_resources,
        Strategy.SERVERLESS: _lambda_resources,
        Strategy.KUBERNETES: _eks_resources,
    }
    build = builders.get(strategy, _ec2_resources)
    return DeploymentPlan(
        strategy=strategy,
        region=region,
        app_name=app_name,
        resources=build(app_name, region, analysis, config),
    )


def _ec2_resources(app_name: str, region: str, analysis: Analysis, config: DeploymentConfig) -> List[ResourceConfig]:
    return [
        ResourceConfig("VPC", "Default VPC")
        .add("Type", "Default VPC")
        .add("Region", region),
        ResourceConfig("Security Group", f"{app_name}-sg", important=True)
        .add("Ingress Ports", f"22 (SSH), {analysis.port} (App)")
        .add("Egress", "All traffic")
        .add("CIDR", "0.0.0.0/0"),
        ResourceConfig("Auto Scaling Group", f"{app_name}-asg", important=True)
        .add("Min/Max/Desired", "1/1/1")
        .add("Health Check Type", "EC2")
        .add("Health Check Grace Period", "300s"),
        ResourceConfig("EC2 Instance", f"{app_name} (via ASG)", important=True)
        .add("Instance Type", config.ec2_instance_type or "t3.micro")
        .add("AMI", "Amazon Linux 2023 (latest)")
        .add("Volume Size", f"{config.ec2_volume_size or 0} GB")
        .add("Volume Type", "GP3 (encrypted)")
        .add("Monitoring", "Enabled"),
    ]


def _lambda_resources(app_name: str, region: str, analysis: Analysis, config: DeploymentConfig) -> List[ResourceConfig]:
    concurrency = config.lambda_reserved_concurrency
    return [
        ResourceConfig("IAM Role", f"{app_name}-lambda-role")
        .add("Service", "lambda.amazonaws.com")
        .add("Policies", "AWSLambdaBasicExecutionRole"),
        ResourceConfig("Lambda Function", app_name, important=True)
        .add("Runtime", detect_runtime(analysis.language))
        .add("Memory", f"{config.lambda_memory or 0} MB")
        .add("Timeout", f"{config.lambda_timeout or 0} seconds")
        .add("Reserved Concurrency", concurrency if concurrency else "Unreserved")
        .add("Tracing", "X-Ray Active"),
        ResourceConfig("CloudWatch Logs", f"/aws/lambda/{app_name}")
        .add("Retention", "7 days"),
        ResourceConfig("API Gateway HTTP API", f"{app_name}-api", important=True)
        .add("Protocol", "HTTP")
        .add("Routes", "ANY / and ANY /{proxy+}")
        .add("CORS", "Enabled (all origins)")
        .add("Integration", "Lambda proxy"),
    ]


def _eks_resources(app_name: str, region: str, analysis: Analysis, config: DeploymentConfig) -> List[ResourceConfig]:
    return [
        ResourceConfig("VPC", f"{app_name}-vpc", important=True)
        .add("CIDR Block", "10.0.0.0/16")
        .add("Availability Zones", "2")
        .add("Private Subnets", "10.0.1.0/24, 10.0.2.0/24")
        .add("Public Subnets", "10.0.101.0/24, 10.0.102.0/24")
        .add("NAT Gateway", "Single (in public subnet)"),
        ResourceConfig("EKS Cluster", f"{app_name}-eks", important=True)
        .add("Kubernetes Version", "1.31")
        .add("Endpoint Access", "Public")
        .add("Cluster Logging", "API, Audit, Authenticator")
        .add("Encryption", "Secrets encrypted with KMS")
        .add("Pod Identity", "Enabled"),
        ResourceConfig("EKS Managed Node Group", f"{app_name}-node-group", important=True)
        .add("Instance Type", config.eks_node_type or "")
        .add("Min Nodes", config.eks_min_nodes or 0)
        .add("Max Nodes", config.eks_max_nodes or 0)
        .add("Desired Nodes", config.eks_desired_nodes or 0)
        .add("Volume Size", f"{config.eks_node_volume_size or 0} GB")
        .add("Volume Type", "GP3 (encrypted)")
        .add("Capacity Type", "ON_DEMAND"),
        ResourceConfig("Kubernetes Deployment", f"{app_name}-deployment", important=True)
        .add("Replicas", "2")
        .add("Container Image", detect_container_image(analysis.language))
        .add("Container Port", analysis.port)
        .add("CPU Request", "100m")
        .add("Memory Request", "128Mi")
        .add("CPU Limit", "500m")
        .add("Memory Limit", "512Mi"),
        ResourceConfig("Load Balancer Service", f"{app_name}-service", important=True)
        .add("Type", "LoadBalancer")
        .add("Port Mapping", f"80 -> {analysis.port}")
        .add("Protocol", "TCP")
        .add("AWS Load Balancer", "Classic ELB (auto-created)"),
    ]


def render_plan(plan: DeploymentPlan) -> str:
    """Plain-text rendering of a plan for terminal output."""
    lines = [
        "📋 DEPLOYMENT PLAN",
        "",
        f"  Strategy:    {plan.strategy.value}",
        f"  Region:      {plan.region}",
        f"  Application: {plan.app_name}",
        "",
        "Resources to be Created",
    ]
    for resource in plan.resources:
        marker = " *" if resource.important else ""
        lines.append("")
        lines.append(f"  {resource.type}{marker}: {resource.name}")
        for key, value in resource.parameters.items():
            lines.append(f"      {key}: {value}")

    lines.append("")
    lines.append("* = Important resources (will incur costs)")
    if plan.strategy == Strategy.KUBERNETES:
        lines.append("⚠️  EKS clusters incur charges (~$0.10/hour for control plane + node costs)")
    return "\n".join(lines)
