"""Tests for vibe.json manifest parsing."""

import json

import pytest

from src.models.microservice import ServiceStatus
from tracker.manifest import ManifestError, parse_manifest, service_name_from_path


class TestParseManifest:
    def test_full_manifest(self):
        manifest = parse_manifest(json.dumps({
            "serviceName": "payment",
            "status": "In Progress",
            "currentTask": "Stripe integration",
            "progress": 40,
            "lastUpdate": "2026-03-01T12:00:00Z",
            "nextSteps": ["Webhooks", "Refunds"],
            "dependencies": ["auth"],
        }))
        assert manifest.service_name == "payment"
        assert manifest.status == ServiceStatus.IN_PROGRESS
        assert manifest.progress == 40
        assert manifest.next_steps == ["Webhooks", "Refunds"]

    def test_defaults(self):
        manifest = parse_manifest("{}")
        assert manifest.service_name is None
        assert manifest.status == ServiceStatus.BACKLOG
        assert manifest.next_steps == []

    def test_invalid_json(self):
        with pytest.raises(ManifestError, match="invalid JSON"):
            parse_manifest("{not json")

    def test_invalid_status(self):
        with pytest.raises(ManifestError, match="status"):
            parse_manifest('{"status": "Shipped"}')

    def test_progress_out_of_range(self):
        with pytest.raises(ManifestError, match="progress"):
            parse_manifest('{"progress": 150}')


class TestServiceNameFromPath:
    def test_parent_directory(self):
        assert service_name_from_path("services/payment/vibe.json") == "payment"

    def test_root_manifest(self):
        assert service_name_from_path("vibe.json") == "Unknown Service"
