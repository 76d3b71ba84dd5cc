"""
Prompt templates for configuration extraction and plan modification.
"""

PARAMETERS_BLOCK = """**Strategy & Region:**
- strategy: "vm", "kubernetes", or "serverless"
- region: AWS region (e.g., "eu-west-3", "us-east-1", "ap-south-1")

**EC2/VM Parameters (when strategy=vm):**
- ec2_instance_type: Instance type (e.g., "t3.micro", "t3.small", "t3.medium", "t3.large", "m5.large", "r5.xlarge")
- volume_size: Root volume size in GB (e.g., 30, 50, 100)

**EKS/Kubernetes Parameters (when strategy=kubernetes):**
- eks_node_type: Node instance type (e.g., "t3.medium", "t3.large", "m5.large")
- eks_min_nodes: Minimum number of nodes (integer)
- eks_max_nodes: Maximum number of nodes (integer)
- eks_desired_nodes: Desired number of nodes (integer)
- eks_node_volume_size: Node volume size in GB

**Lambda/Serverless Parameters (when strategy=serverless):**
- lambda_memory: Memory in MB (128-10240)
- lambda_timeout: Timeout in seconds (1-900)
- lambda_reserved_concurrency: Reserved concurrent executions (integer)
"""

EXTRACTION_RESPONSE_FORMAT = """**Response Format (JSON only):**
{
  "strategy": "vm",
  "region": "eu-west-3",
  "ec2_instance_type": "t3.medium",
  "volume_size": 30,
  "eks_node_type": "t3.medium",
  "eks_min_nodes": 1,
  "eks_max_nodes": 3,
  "eks_desired_nodes": 2,
  "eks_node_volume_size": 30,
  "lambda_memory": 512,
  "lambda_timeout": 30
}

**Important:**
- Only include parameters that are EXPLICITLY mentioned in the user's request
- Field names MUST match exactly: ec2_instance_type, volume_size, eks_node_type, etc.
- Instance types: preserve exact format (e.g., "t3.medium", not "T3.Medium" or "t3-medium")
- If user says "3 nodes", set eks_min_nodes, eks_max_nodes, and eks_desired_nodes all to 3
- Understand variations: "EKS"/"Kubernetes"/"K8s" -> strategy="kubernetes", "VM"/"EC2" -> strategy="vm"
- Omit fields that are not mentioned

**Respond with ONLY the JSON object, nothing else.**
"""

MODIFICATION_EXAMPLES = """**Parameter Extraction Examples:**
- "instance type t3.medium" -> {"ec2_instance_type": "t3.medium"}
- "t3.large instance" -> {"ec2_instance_type": "t3.large"}
- "change to t3.small" -> {"ec2_instance_type": "t3.small"}
- "32GB disk" -> {"volume_size": 32}
- "disk to 32GB" -> {"volume_size": 32}
- "50 GB volume" -> {"volume_size": 50}
- "5 nodes" -> {"eks_desired_nodes": 5, "eks_min_nodes": 5, "eks_max_nodes": 5}
- "region eu-west-1" -> {"region": "eu-west-1"}
- "32GB and t3.medium" -> {"volume_size": 32, "ec2_instance_type": "t3.medium"}

**Response Format (JSON only - include ONLY changed parameters):**
{
  "ec2_instance_type": "t3.medium",
  "volume_size": 32
}

**Critical Requirements:**
- Field names MUST match EXACTLY: ec2_instance_type, volume_size, eks_node_type, etc.
- Instance types: exact format (e.g., "t3.medium", not "T3.Medium")
- Include ONLY parameters mentioned in the modification request
- Omit parameters that are not being changed
- If user says "instance type X", you MUST include "ec2_instance_type": "X"
- If user says "disk Y GB" or "Y GB", you MUST include "volume_size": Y

**Respond with ONLY the JSON object of CHANGED parameters, nothing else.**
"""


def build_extraction_prompt(user_prompt: str) -> str:
    """Prompt asking for every sizing parameter the request mentions, as JSON."""
    prompt = "You are a deployment configuration expert. "
    prompt += "Extract deployment parameters from the user's natural language request.\n\n"
    prompt += f"**User Request:** {user_prompt}\n\n"
    prompt += "**Your Task:**\n"
    prompt += "Analyze the request and extract any deployment configuration parameters mentioned.\n\n"
    prompt += "**Available Parameters (matching Terraform variables):**\n\n"
    prompt += PARAMETERS_BLOCK
    prompt += "\n" + EXTRACTION_RESPONSE_FORMAT
    return prompt


def build_modification_prompt(strategy: str, region: str, plan_description: str, user_request: str) -> str:
    """Prompt asking only for the parameters a modification request changes."""
    prompt = "You are a deployment configuration expert. The user wants to modify their deployment plan.\n\n"
    prompt += "**Current Deployment Plan:**\n"
    prompt += f"Strategy: {strategy}\n"
    prompt += f"Region: {region}\n"
    prompt += f"{plan_description}\n\n"
    prompt += f"**User's Modification Request:** {user_request}\n\n"
    prompt += "**Your Task:**\n"
    prompt += "Understand what the user wants to change and provide ONLY the changed parameters.\n\n"
    prompt += "**Available Terraform Variables:**\n\n"
    prompt += PARAMETERS_BLOCK
    prompt += "\n" + MODIFICATION_EXAMPLES
    return prompt
