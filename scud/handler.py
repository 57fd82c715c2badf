"""Lambda handler factory for Go functions."""

import os
from typing import Any, Dict, Optional

from aws_cdk import Aws, Duration
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs

from .config import Config
from .deployment_config import LAMBDA_CONFIG
from .pure import iaac
from .runtime import asset_code_go

# Pure constructor of Lambda functions: Lambda(props_fn) -> Pure
Lambda = iaac(_lambda.Function)


def go(code: str, source_root: Optional[str] = None, version: Optional[str] = None,
       config: Optional[Config] = None, **props: Any) -> Dict[str, Any]:
    """Props of a Go Lambda function built from source.

    Args:
        code: Directory of the Lambda ``main`` package
        source_root: Module root to fingerprint, defaults to ``code``
        version: Stamped into the binary as ``main.version``
        config: Build settings
        **props: Any other ``aws_lambda.Function`` keyword argument; code,
            handler, runtime and function name are always set here

    Returns:
        Keyword arguments for ``aws_lambda.Function``
    """
    root = source_root or code
    entry_point = os.path.relpath(code, root)

    function = {
        "timeout": Duration.minutes(LAMBDA_CONFIG["timeout_minutes"]),
        "log_retention": getattr(logs.RetentionDays, LAMBDA_CONFIG["log_retention_days"]),
        **props,
    }
    function.update({
        "code": asset_code_go(root, entry_point, version=version, config=config),
        "handler": LAMBDA_CONFIG["handler"],
        "runtime": _lambda.Runtime.GO_1_X,
        "function_name": f"{Aws.STACK_NAME}-{os.path.basename(os.path.normpath(code))}",
    })
    return function
