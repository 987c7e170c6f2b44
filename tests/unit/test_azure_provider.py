# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the Azure VM provider."""

from __future__ import annotations

import json

import pytest

from machine_identity.errors import MetadataParseError, MetadataUnavailableError, TransportError
from machine_identity.metadata.transport import MetadataTransport
from machine_identity.models import ProviderKind
from machine_identity.providers import AzureProvider, DetectorState
from machine_identity.providers.azure import machine_info_from_document
from machine_identity.sdk.config import IdentityConfig

INSTANCE_DOCUMENT = {
    "compute": {
        "vmId": "02aab8a4-74ef-476e-8182-f6d2ba4166a6",
        "location": "westeurope",
        "zone": "2",
        "name": "vm-1",
        "sku": "22_04-lts",
        "resourceGroupName": "rg-1",
        "vmSize": "Standard_D2s_v3",
        "osType": "Linux",
        "vmScaleSetName": "",
        "subscriptionId": "sub-1",
    },
    "network": {
        "interface": [
            {
                "ipv4": {
                    "ipAddress": [
                        {"privateIpAddress": "10.1.0.4", "publicIpAddress": "52.1.2.3"},
                        {"privateIpAddress": "10.1.0.5", "publicIpAddress": ""},
                    ],
                    "subnet": [{"address": "10.1.0.0", "prefix": "24"}],
                },
                "macAddress": "000D3A000001",
            },
            {"ipv4": {"ipAddress": [{"privateIpAddress": "10.2.0.4"}]}},
        ]
    },
}

GET_ATTESTED = ("GET", "attested/document")
GET_INSTANCE = ("GET", "instance")


def _provider(transport, tmp_path, fallback=None):
    fallback_path = tmp_path / "azure_instance.json"
    if fallback is not None:
        fallback_path.write_text(fallback)
    config = IdentityConfig(azure_fallback_path=str(fallback_path))
    return AzureProvider(config, transport=transport)


class TestAzureProviderInit:
    def test_name(self):
        provider = AzureProvider()
        assert provider.kind is ProviderKind.AZURE
        assert provider.name == "Azure"

    def test_default_transport(self):
        transport = AzureProvider().transport
        assert isinstance(transport, MetadataTransport)
        assert transport.default_headers == {"Metadata": "True"}
        assert transport.url_for("instance") == "http://169.254.169.254/metadata/instance?api-version=2021-02-01"

    def test_instance_document_with_attestation(self, fake_transport, tmp_path):
        transport = fake_transport({GET_ATTESTED: b'{"signature": "..."}', GET_INSTANCE: json.dumps(INSTANCE_DOCUMENT).encode()})
        provider = _provider(transport, tmp_path)

        provider.init()

        assert provider.state is DetectorState.READY
        assert [c[1] for c in transport.calls] == ["attested/document", "instance"]

    def test_instance_document_alone_is_sufficient(self, fake_transport, tmp_path):
        transport = fake_transport({GET_INSTANCE: json.dumps(INSTANCE_DOCUMENT).encode()})
        provider = _provider(transport, tmp_path)

        provider.init()

        assert provider.get_virtual_machine_id() == "02aab8a4-74ef-476e-8182-f6d2ba4166a6"

    def test_local_fallback_file(self, fake_transport, tmp_path):
        transport = fake_transport({})
        provider = _provider(transport, tmp_path, fallback=json.dumps(INSTANCE_DOCUMENT))

        provider.init()

        assert provider.get_machine_info().region == "westeurope"

    def test_composite_error_names_both_causes(self, fake_transport, tmp_path):
        provider = _provider(fake_transport({}), tmp_path)

        with pytest.raises(MetadataUnavailableError) as exc_info:
            provider.init()

        err = exc_info.value
        assert isinstance(err.causes[0], TransportError)
        assert isinstance(err.causes[1], OSError)
        assert "failed to retrieve azure metadata" in str(err)
        assert "failed to read local config" in str(err)
        assert provider.state is DetectorState.FAILED

    def test_malformed_instance_document(self, fake_transport, tmp_path):
        provider = _provider(fake_transport({GET_INSTANCE: b"not json"}), tmp_path)
        with pytest.raises(MetadataParseError):
            provider.init()


class TestAzureMachineInfo:
    def test_maps_instance_document(self):
        info = machine_info_from_document(INSTANCE_DOCUMENT)

        assert info.instance_id == "02aab8a4-74ef-476e-8182-f6d2ba4166a6"
        assert info.zone == "westeurope-2"
        assert info.region == "westeurope"
        assert info.architecture == ""
        assert info.ip_addresses == ("10.1.0.4", "10.1.0.5", "10.2.0.4")
        assert info.public_dns == "52.1.2.3"

    def test_additional_params_in_order(self):
        info = machine_info_from_document(INSTANCE_DOCUMENT)
        assert [(p.key, p.value) for p in info.additional] == [
            ("InstanceType", "Standard_D2s_v3"),
            ("GroupName", "rg-1"),
            ("ImageID", "22_04-lts"),
            ("OS Type", "Linux"),
            ("AccountID", "sub-1"),
            ("VmScaleSetName", ""),
        ]

    def test_zone_without_availability_zone(self):
        document = {"compute": {"vmId": "vm", "location": "eastus", "zone": ""}}
        assert machine_info_from_document(document).zone == "eastus"

    def test_empty_document(self):
        info = machine_info_from_document({})
        assert info.instance_id == ""
        assert info.ip_addresses == ()
        assert info.public_dns == ""

    def test_get_machine_info_returns_fresh_copies(self, fake_transport, tmp_path):
        provider = _provider(fake_transport({GET_INSTANCE: json.dumps(INSTANCE_DOCUMENT).encode()}), tmp_path)
        provider.init()
        first = provider.get_machine_info()
        second = provider.get_machine_info()
        assert first == second
        assert first is not second
