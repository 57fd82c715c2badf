"""Tests for AWS credential checks and certificate discovery."""

from unittest.mock import Mock, patch

import boto3
import pytest
from botocore.exceptions import ClientError, NoCredentialsError
from botocore.stub import Stubber

from scud.aws_utils import AWSManager


@pytest.fixture
def manager():
    session = boto3.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )
    return AWSManager(region="us-east-1", session=session)


def stubbed(manager, service):
    client = manager.session.client(service, region_name=manager.region)
    return client, Stubber(client)


def certificate(domain, suffix):
    return {
        "CertificateArn": f"arn:aws:acm:us-east-1:123456789012:certificate/{suffix}",
        "DomainName": domain,
    }


class TestCredentials:
    """check_aws_credentials."""

    def test_working_credentials(self, manager):
        client, stubber = stubbed(manager, "sts")
        stubber.add_response("get_caller_identity", {
            "UserId": "AIDAEXAMPLE",
            "Account": "123456789012",
            "Arn": "arn:aws:iam::123456789012:user/dev",
        })
        with stubber, patch.object(manager, "_client", return_value=client):
            assert manager.check_aws_credentials() is True

    def test_expired_token(self, manager):
        client, stubber = stubbed(manager, "sts")
        stubber.add_client_error("get_caller_identity", service_error_code="ExpiredToken")
        with stubber, patch.object(manager, "_client", return_value=client):
            assert manager.check_aws_credentials() is False

    def test_missing_credentials(self, manager):
        client = Mock()
        client.get_caller_identity.side_effect = NoCredentialsError()
        with patch.object(manager, "_client", return_value=client):
            assert manager.check_aws_credentials() is False

    def test_other_errors_propagate(self, manager):
        client, stubber = stubbed(manager, "sts")
        stubber.add_client_error("get_caller_identity", service_error_code="Throttling")
        with stubber, patch.object(manager, "_client", return_value=client):
            with pytest.raises(ClientError):
                manager.check_aws_credentials()


class TestCertificateLookup:
    """find_certificate_arn."""

    def lookup(self, manager, pages, host):
        client, stubber = stubbed(manager, "acm")
        for i, page in enumerate(pages):
            expected = {"CertificateStatuses": ["ISSUED"]}
            response = {"CertificateSummaryList": page}
            if i:
                expected["NextToken"] = f"page-{i}"
            if i < len(pages) - 1:
                response["NextToken"] = f"page-{i + 1}"
            stubber.add_response("list_certificates", response, expected)
        with stubber, patch.object(manager, "_client", return_value=client):
            return manager.find_certificate_arn(host)

    def test_exact_match(self, manager):
        arn = self.lookup(manager, [[
            certificate("www.example.com", "www"),
            certificate("api.example.com", "api"),
        ]], "api.example.com")
        assert arn.endswith("/api")

    def test_exact_match_preferred_over_wildcard(self, manager):
        arn = self.lookup(manager, [
            [certificate("*.example.com", "wildcard")],
            [certificate("api.example.com", "api")],
        ], "api.example.com")
        assert arn.endswith("/api")

    def test_wildcard_match(self, manager):
        arn = self.lookup(manager, [[certificate("*.example.com", "wildcard")]], "API.example.com")
        assert arn.endswith("/wildcard")

    def test_wildcard_covers_one_label_only(self, manager):
        arn = self.lookup(manager, [[certificate("*.example.com", "wildcard")]], "v1.api.example.com")
        assert arn is None

    def test_no_certificates(self, manager):
        assert self.lookup(manager, [[]], "api.example.com") is None

    def test_listing_error_propagates(self, manager):
        client, stubber = stubbed(manager, "acm")
        stubber.add_client_error("list_certificates", service_error_code="AccessDeniedException")
        with stubber, patch.object(manager, "_client", return_value=client):
            with pytest.raises(ClientError):
                manager.find_certificate_arn("api.example.com")
