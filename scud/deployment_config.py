"""Deployment configuration defaults for Go Lambda functions behind API Gateway."""

# Build configuration
BUILD_CONFIG = {
    "build_root": "/go",                # host build root when GOPATH is not set
    "container_root": "/go",            # build root as seen inside the container
    "container_src": "/go/src",         # bind mount target for <build_root>/src
    "container_cache": "/go/cache",
    "host_cache": "/tmp/go.amd64",
    "image": "golang",
    "compiler": "go",
    "container_runtime": "docker",
    "container_user": "root",
    "output_dir": "/asset-output",      # bundling output as seen inside the container
    "output_name": "main",
    "target_os": "linux",
    "target_arch": "amd64",
    "local_output_root": ".build",
}

# Files contributing to the source fingerprint: Go sources, go.mod, go.sum
RELEVANT_FILE_PATTERN = r"(.*\.go$)|(.*\.(mod|sum)$)"

# Host variables handed through to a local compiler invocation
PASSTHROUGH_ENV_VARS = [
    "PATH",
    "HOME",
    "GOPATH",
    "GOROOT",
    "GOMODCACHE",
    "GOPROXY",
    "GOFLAGS",
]

# Lambda function defaults
LAMBDA_CONFIG = {
    "handler": "main",
    "timeout_minutes": 1,
    "log_retention_days": "FIVE_DAYS",
}

# REST API Gateway defaults
GATEWAY_CONFIG = {
    "stage_name": "api",
    "cors_max_age_minutes": 10,
    "identity_source": "method.request.header.Authorization",
    "authorizer_type": "COGNITO_USER_POOLS",
    "record_ttl_seconds": 60,
}

# AWS configuration
AWS_CONFIG = {
    "region": "us-east-1",
}
