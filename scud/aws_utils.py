"""
AWS utilities for Go Lambda deployments.
Handles credential checks and certificate discovery for custom API domains.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import get_config

logger = logging.getLogger(__name__)

CREDENTIAL_ERRORS = ("InvalidClientTokenId", "ExpiredToken", "SignatureDoesNotMatch", "AccessDenied")


class AWSManager:
    """Read-only AWS lookups used while describing a deployment."""

    def __init__(self, region: Optional[str] = None, session: Optional[boto3.Session] = None):
        self.region = region or get_config().aws_region
        self.session = session or boto3.Session()

    def _client(self, service: str):
        return self.session.client(service, region_name=self.region)

    def check_aws_credentials(self) -> bool:
        """
        Check if AWS credentials are configured and working.
        Returns True if credentials work, False if they are missing or expired.
        """
        try:
            response = self._client('sts').get_caller_identity()
            logger.info(f"AWS credentials working for {response.get('Arn', 'Unknown')}")
            return True
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code in CREDENTIAL_ERRORS:
                logger.warning(f"AWS credentials rejected: {code}")
                return False
            raise
        except BotoCoreError as e:
            logger.warning(f"AWS credentials unavailable: {e}")
            return False

    @staticmethod
    def _covers(certificate_domain: str, host: str) -> bool:
        """Exact match, or a wildcard covering exactly one label."""
        certificate_domain = certificate_domain.lower()
        host = host.lower()
        if certificate_domain == host:
            return True
        if certificate_domain.startswith('*.'):
            _, _, parent = host.partition('.')
            return parent == certificate_domain[2:]
        return False

    def find_certificate_arn(self, host: str) -> Optional[str]:
        """
        Find an issued ACM certificate valid for host.

        Args:
            host: Fully qualified domain name of the API

        Returns:
            The certificate ARN, exact matches preferred over wildcards, or None
        """
        wildcard = None
        try:
            paginator = self._client('acm').get_paginator('list_certificates')
            for page in paginator.paginate(CertificateStatuses=['ISSUED']):
                for certificate in page.get('CertificateSummaryList', []):
                    domain = certificate.get('DomainName', '')
                    if not self._covers(domain, host):
                        continue
                    if domain.lower() == host.lower():
                        logger.info(f"Found certificate for {host}: {certificate['CertificateArn']}")
                        return certificate['CertificateArn']
                    wildcard = wildcard or certificate['CertificateArn']
        except ClientError as e:
            logger.error(f"Error listing ACM certificates in {self.region}: {e}")
            raise

        if wildcard:
            logger.info(f"Found wildcard certificate for {host}: {wildcard}")
        else:
            logger.warning(f"No issued certificate covers {host} in {self.region}")
        return wildcard
