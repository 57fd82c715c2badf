"""REST API Gateway service: Lambda resources, OAuth2 and custom domain."""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import jsii
from aws_cdk import Aws, Duration
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_route53 as route53
from aws_cdk import aws_route53_targets as targets
from constructs import Construct

from .aws_utils import AWSManager
from .config import Config, get_config
from .deployment_config import GATEWAY_CONFIG
from .errors import ConfigurationError
from .pure import Effect, Pure, iaac, join, use, wrap

logger = logging.getLogger(__name__)


def gateway(props: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Props of a regional REST API deployed to the ``api`` stage.

    Deployment, stage, endpoint type and CORS are fixed; any other
    ``RestApi`` keyword argument in props is passed through.
    """
    settings = dict(props or {})
    settings.update({
        "deploy": True,
        "deploy_options": apigw.StageOptions(stage_name=GATEWAY_CONFIG["stage_name"]),
        "endpoint_types": [apigw.EndpointType.REGIONAL],
        "fail_on_warnings": True,
        "default_cors_preflight_options": apigw.CorsOptions(
            allow_origins=apigw.Cors.ALL_ORIGINS,
            max_age=Duration.minutes(GATEWAY_CONFIG["cors_max_age_minutes"]),
        ),
    })
    return settings


def oauth2(gateway: apigw.RestApi, cognito_user_pools: Sequence[str]) -> Pure:
    """Cognito user pool authorizer of the gateway."""
    def Authorizer():
        return {
            "type": GATEWAY_CONFIG["authorizer_type"],
            "name": f"{Aws.STACK_NAME}-oauth2",
            "identity_source": GATEWAY_CONFIG["identity_source"],
            "provider_arns": list(cognito_user_pools),
            "rest_api_id": gateway.rest_api_id,
        }
    return iaac(apigw.CfnAuthorizer)(Authorizer)


@jsii.implements(apigw.IAuthorizer)
class AuthorizerRef:
    """Reference to an authorizer declared with ``CfnAuthorizer``."""

    def __init__(self, authorizer_id: str):
        self._authorizer_id = authorizer_id

    @property
    def authorizer_id(self) -> str:
        return self._authorizer_id

    @property
    def authorization_type(self) -> apigw.AuthorizationType:
        return apigw.AuthorizationType.COGNITO


def require_oauth2(authorizer_id: str, scopes: Sequence[str]) -> Dict[str, Any]:
    """Method options admitting only tokens granted one of scopes."""
    return {
        "authorizer": AuthorizerRef(authorizer_id),
        "authorization_type": apigw.AuthorizationType.COGNITO,
        "request_parameters": {GATEWAY_CONFIG["identity_source"]: True},
        "authorization_scopes": list(scopes),
    }


def parent_domain(host: str) -> str:
    _, _, domain = host.partition('.')
    if not domain:
        raise ConfigurationError(f"Custom domain {host} has no parent zone")
    return domain


class Service:
    """REST API assembled step by step.

    Every method returns a new Service; constructs are registered with a
    scope only by ``run``.
    """

    def __init__(self, effect: Effect, config: Optional[Config] = None):
        self.effect = effect
        self.config = config or get_config()

    def _then(self, effect: Effect) -> "Service":
        return Service(effect, self.config)

    def enable_oauth2(self, cognito_user_pools: Sequence[str]) -> "Service":
        """Authorize requests against Cognito user pools."""
        return self._then(
            self.effect.flat_map(
                lambda env: {"authorizer": oauth2(env["gateway"], cognito_user_pools)}
            )
        )

    def add_resource(self, path: str, handler: Union[Pure, Any],
                     scopes: Optional[Sequence[str]] = None) -> "Service":
        """Route ``path`` and every path below it to handler.

        The resource is protected only when OAuth2 is enabled and scopes
        are given.
        """
        resource_path = path.strip('/')

        def integration(env):
            if isinstance(handler, Pure):
                return {"h": wrap(apigw.LambdaIntegration)(handler)}
            return {"h": apigw.LambdaIntegration(handler)}

        def attach(env):
            authorizer = env.get("authorizer")
            options = {}
            if authorizer is not None and scopes:
                options = require_oauth2(authorizer.ref, scopes)

            root = env["gateway"].root.resource_for_path(resource_path)
            root.add_method("ANY", env["h"], **options)
            root.add_resource("{any+}").add_method("ANY", env["h"], **options)
            logger.debug(f"Routed /{resource_path} (scopes={list(scopes or [])})")

        return self._then(self.effect.flat_map(integration).effect(attach))

    def with_domain(self, host: str, certificate_arn: Optional[str] = None,
                    hosted_zone: Union[Pure, route53.IHostedZone, None] = None) -> "Service":
        """Serve the API at host with an alias record in its parent zone.

        Without certificate_arn an issued ACM certificate for host is looked
        up in the configured region; without hosted_zone the zone of the
        parent domain is looked up by CDK.
        """
        config = self.config

        def domain(env):
            def bind(scope):
                arn = certificate_arn or _lookup_certificate(host, config)
                certificate = acm.Certificate.from_certificate_arn(scope, "X509", arn)
                return env["gateway"].add_domain_name(
                    "DomainName",
                    domain_name=host,
                    certificate=certificate,
                    endpoint_type=apigw.EndpointType.REGIONAL,
                )
            return {"domain": Pure(bind)}

        def record(env):
            def bind(scope):
                zone = hosted_zone.run(scope) if isinstance(hosted_zone, Pure) else hosted_zone
                if zone is None:
                    zone = route53.HostedZone.from_lookup(
                        scope, "HZone", domain_name=parent_domain(host)
                    )
                return route53.ARecord(
                    scope, "ARecord",
                    zone=zone,
                    record_name=host,
                    target=route53.RecordTarget.from_alias(targets.ApiGatewayDomain(env["domain"])),
                    ttl=Duration.seconds(GATEWAY_CONFIG["record_ttl_seconds"]),
                )
            return {"record": Pure(bind)}

        return self._then(self.effect.flat_map(domain).flat_map(record))

    def run(self, scope: Construct) -> Dict[str, Any]:
        """Register the service with scope; returns the created constructs by name."""
        return join(scope, self.effect)


def _lookup_certificate(host: str, config: Config) -> str:
    arn = AWSManager(region=config.aws_region).find_certificate_arn(host)
    if not arn:
        raise ConfigurationError(f"No issued ACM certificate covers {host} in {config.aws_region}")
    return arn


def mk_service(gateway: Callable[[], Mapping[str, Any]], config: Optional[Config] = None) -> Service:
    """Start a service from a props function of the REST API."""
    return Service(use({"gateway": iaac(apigw.RestApi)(gateway)}), config)
