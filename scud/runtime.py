"""CDK asset code bundling a Go Lambda function from source."""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import jsii
from aws_cdk import AssetHashType, AssetStaging, BundlingOptions, DockerImage, DockerVolume, ILocalBundling
from aws_cdk import aws_lambda as _lambda

from .bundler import LocalStrategy, prepare
from .config import Config, get_config
from .errors import CompilerError
from .models import BuildSpec, Strategy

logger = logging.getLogger(__name__)


@jsii.implements(ILocalBundling)
class LocalBundling:
    """Hooks the host toolchain into CDK asset bundling.

    CDK calls ``try_bundle`` first and runs the container image only when it
    returns False.
    """

    def __init__(self, spec: BuildSpec, config: Optional[Config] = None, required: bool = False):
        self.spec = spec
        self.strategy = LocalStrategy(config)
        self.required = required

    def try_bundle(self, output_dir: str, options=None, **kwargs) -> bool:
        built = self.strategy.run(self.spec, output_dir)
        if not built and self.required:
            raise CompilerError(f"Local toolchain '{self.spec.compiler}' is not available")
        return built


def bundling_options(spec: BuildSpec, config: Optional[Config] = None) -> BundlingOptions:
    """Describe both build strategies of spec for CDK."""
    config = config or get_config()

    local = None
    if config.strategy is not Strategy.CONTAINER:
        local = LocalBundling(spec, config, required=config.strategy is Strategy.LOCAL)

    return BundlingOptions(
        image=DockerImage.from_registry(spec.image),
        command=[spec.compiler] + spec.build_args(AssetStaging.BUNDLING_OUTPUT_DIR),
        local=local,
        user=spec.user,
        environment=spec.container_environment(),
        volumes=[
            DockerVolume(container_path=v.container_path, host_path=v.host_path)
            for v in spec.volumes
        ],
        working_directory=spec.working_directory,
    )


def asset_code_go(source_root: Union[str, Path], entry_point: str = ".",
                  version: Optional[str] = None, go_vars: Optional[Dict[str, str]] = None,
                  go_env: Optional[Dict[str, str]] = None,
                  config: Optional[Config] = None) -> _lambda.Code:
    """Bundle a Go Lambda function from source.

    The asset is identified by the fingerprint of the whole source tree, so
    CDK skips bundling and deployment while the sources stay the same.
    """
    config = config or get_config()
    fingerprint, spec = prepare(source_root, entry_point, config, version, go_vars, go_env)
    logger.debug(f"Asset {spec.source_code} hash {fingerprint}")

    return _lambda.Code.from_asset(
        str(source_root),
        asset_hash_type=AssetHashType.CUSTOM,
        asset_hash=fingerprint,
        bundling=bundling_options(spec, config),
    )
