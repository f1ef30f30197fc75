"""
tests/test_cli.py — CLI tests.

Tests commands using Click CliRunner against manifest files.
"""

import json
import os
import sys
import yaml
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from click.testing import CliRunner

import knc.config
from knc.cli import main

MANIFEST = """
apiVersion: serving.knative.dev/v1
kind: Service
metadata:
  name: echo
  namespace: default
spec:
  template:
    spec:
      containers:
        - image: docker.io/acme/echo:v2
  traffic:
    - latestRevision: true
      percent: 90
      tag: current
    - revisionName: echo-00001
      latestRevision: false
      percent: 10
status:
  latestCreatedRevisionName: echo-00002
  latestReadyRevisionName: echo-00002
  traffic:
    - revisionName: echo-00002
      latestRevision: true
      percent: 90
      tag: current
    - revisionName: echo-00001
      latestRevision: false
      percent: 10
---
apiVersion: serving.knative.dev/v1
kind: Service
metadata:
  name: other
  namespace: prod
spec:
  template:
    spec:
      containers:
        - image: docker.io/acme/other:v1
---
apiVersion: v1
kind: List
items:
  - apiVersion: serving.knative.dev/v1
    kind: Revision
    metadata:
      name: echo-00001
      namespace: default
      labels:
        serving.knative.dev/service: echo
        serving.knative.dev/configurationGeneration: "1"
    spec:
      containers:
        - image: docker.io/acme/echo:v1
  - apiVersion: serving.knative.dev/v1
    kind: Revision
    metadata:
      name: echo-00002
      namespace: default
      labels:
        serving.knative.dev/service: echo
        serving.knative.dev/configurationGeneration: "2"
    spec:
      containers:
        - image: docker.io/acme/echo@sha256:abcdef0123456789abcdef0123456789abcdef0123456789abcdef0123456789
          ports:
            - containerPort: 8080
    status:
      imageDigest: sha256:abcdef0123456789abcdef0123456789abcdef0123456789abcdef0123456789
      conditions:
        - type: Ready
          status: "True"
  - apiVersion: serving.knative.dev/v1
    kind: Revision
    metadata:
      name: other-00001
      namespace: prod
      labels:
        serving.knative.dev/service: other
        serving.knative.dev/configurationGeneration: "1"
    spec:
      containers:
        - image: docker.io/acme/other:v1
---
apiVersion: eventing.knative.dev/v1
kind: Broker
metadata:
  name: nest
  namespace: default
"""


@pytest.fixture(autouse=True)
def knc_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(knc.config, "KNC_HOME", home)
    return home


@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "echo.yaml"
    path.write_text(MANIFEST)
    return str(path)


runner = CliRunner()


def table_rows(output):
    return [line.split() for line in output.splitlines()]


# ─────────────────────────────────────────────
# knc service update
# ─────────────────────────────────────────────

class TestServiceUpdate:
    def test_tag_revision(self, manifest):
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--tag", "echo-00001=old"])
        assert result.exit_code == 0, result.output
        svc = yaml.safe_load(result.output)
        assert svc["kind"] == "Service"
        assert svc["spec"]["traffic"] == [
            {"tag": "current", "latestRevision": True, "percent": 90},
            {"tag": "old", "revisionName": "echo-00001", "latestRevision": False, "percent": 10},
        ]

    def test_traffic_comma_separated(self, manifest):
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--traffic", "@latest=50,echo-00001=50"])
        assert result.exit_code == 0, result.output
        traffic = yaml.safe_load(result.output)["spec"]["traffic"]
        assert [t["percent"] for t in traffic] == [50, 50]

    def test_untag_and_move_traffic(self, manifest):
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--untag", "current", "--traffic", "@latest=100"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["spec"]["traffic"] == [
            {"latestRevision": True, "percent": 100},
        ]

    def test_bad_sum_shows_usage(self, manifest):
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--traffic", "@latest=40", "--traffic", "echo-00001=70"])
        assert result.exit_code == 1
        assert "Error: given traffic percents sum to 110, want 100" in result.output
        assert "service update --help' for usage." in result.output

    def test_missing_tag(self, manifest):
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--untag", "foo,bar"])
        assert result.exit_code == 1
        assert "tag(s) foo, bar not present for any revisions of service echo" in result.output
        assert "--help' for usage" not in result.output

    def test_service_not_found(self, manifest):
        result = runner.invoke(main, ["service", "update", "nope", "-f", manifest])
        assert result.exit_code == 1
        assert "service 'nope' not found" in result.output

    def test_missing_manifest(self, tmp_path):
        result = runner.invoke(main, ["service", "update", "echo", "-f", str(tmp_path / "x.yaml")])
        assert result.exit_code == 1
        assert "Manifest file not found" in result.output

    def test_output_file(self, manifest, tmp_path):
        out = tmp_path / "updated.yaml"
        result = runner.invoke(main, ["service", "update", "echo", "-f", manifest,
                                      "--tag", "echo-00001=old", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "Written to" in result.output
        assert yaml.safe_load(out.read_text())["metadata"]["name"] == "echo"


# ─────────────────────────────────────────────
# knc revision
# ─────────────────────────────────────────────

class TestRevisionList:
    def test_table(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest])
        assert result.exit_code == 0, result.output
        rows = table_rows(result.output)
        assert rows[0][:5] == ["NAME", "SERVICE", "TRAFFIC", "TAGS", "GENERATION"]
        assert rows[1][:5] == ["echo-00002", "echo", "90%", "current", "2"]
        assert rows[2][:4] == ["echo-00001", "echo", "10%", "1"]
        assert len(rows) == 3

    def test_all_namespaces(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-A"])
        assert result.exit_code == 0, result.output
        rows = table_rows(result.output)
        assert rows[0][0] == "NAMESPACE"
        assert [row[:2] for row in rows[1:]] == [
            ["default", "echo-00002"],
            ["default", "echo-00001"],
            ["prod", "other-00001"],
        ]

    def test_no_headers(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "--no-headers"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("echo-00002")

    def test_by_service(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-n", "prod", "-s", "other"])
        assert result.exit_code == 0, result.output
        assert [row[0] for row in table_rows(result.output)] == ["NAME", "other-00001"]

    def test_unknown_service(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-s", "nope"])
        assert result.exit_code == 1
        assert "service 'nope' not found" in result.output

    def test_by_name(self, manifest):
        result = runner.invoke(main, ["revision", "list", "echo-00001", "-f", manifest])
        assert result.exit_code == 0, result.output
        assert [row[0] for row in table_rows(result.output)] == ["NAME", "echo-00001"]

    def test_too_many_names(self, manifest):
        result = runner.invoke(main, ["revision", "list", "a", "b", "-f", manifest])
        assert result.exit_code == 1
        assert "accepts maximum 1 argument, not 2 arguments as given" in result.output
        assert "--help' for usage." in result.output

    def test_empty(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-n", "empty"])
        assert result.exit_code == 0
        assert result.output.strip() == "No revisions found."

    def test_yaml(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-o", "yaml"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert data["kind"] == "RevisionList"
        assert [r["metadata"]["name"] for r in data["items"]] == ["echo-00002", "echo-00001"]
        assert "annotations" not in data["items"][0]["metadata"]

    def test_json(self, manifest):
        result = runner.invoke(main, ["revision", "list", "-f", manifest, "-o", "json"])
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)["items"]) == 2


class TestRevisionDescribe:
    def test_describe(self, manifest):
        result = runner.invoke(main, ["revision", "describe", "echo-00002", "-f", manifest])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split() == ["Name:", "echo-00002"]
        assert "Image:" in result.output
        assert "(at abcdef)" in result.output
        assert "Latest Ready" not in result.output

    def test_verbose(self, manifest):
        result = runner.invoke(main, ["revision", "describe", "echo-00002", "-f", manifest, "-v"])
        assert result.exit_code == 0, result.output
        rows = {row[0]: row[1:] for row in table_rows(result.output) if row}
        assert rows["Port:"] == ["8080"]
        assert rows["Traffic:"] == ["90%"]
        assert rows["Tags:"] == ["current"]
        assert any(row[:3] == ["Latest", "Ready:", "true"] for row in table_rows(result.output))

    def test_yaml(self, manifest):
        result = runner.invoke(main, ["revision", "describe", "echo-00001", "-f", manifest, "-o", "yaml"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["metadata"]["name"] == "echo-00001"

    def test_not_found(self, manifest):
        result = runner.invoke(main, ["revision", "describe", "nope", "-f", manifest])
        assert result.exit_code == 1
        assert "revision 'nope' not found" in result.output


BROKEN_REVISION = """
apiVersion: serving.knative.dev/v1
kind: Revision
metadata:
  name: broken-00001
  namespace: default
spec:
  containers:
    - image: docker.io/acme/broken:v1
"""


class TestMalformedManifest:
    def write(self, tmp_path, text):
        path = tmp_path / "broken.yaml"
        path.write_text(text)
        return str(path)

    def test_bad_timestamp(self, tmp_path):
        path = self.write(tmp_path, BROKEN_REVISION.replace(
            "  namespace: default\n", "  namespace: default\n  creationTimestamp: yesterday\n"
        ))
        result = runner.invoke(main, ["revision", "list", "-f", path])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error: Invalid Revision 'broken-00001' in manifest" in result.output
        assert "yesterday" in result.output

    def test_bad_env_from(self, tmp_path):
        path = self.write(tmp_path, BROKEN_REVISION + "      envFrom:\n        - prefix: X\n")
        result = runner.invoke(main, ["revision", "describe", "broken-00001", "-f", path])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error: Invalid Revision 'broken-00001' in manifest" in result.output
        assert "envFrom entry has neither configMapRef nor secretRef" in result.output

    def test_bad_percent(self, tmp_path):
        path = self.write(tmp_path, MANIFEST.replace("percent: 90", "percent: ninety", 1))
        result = runner.invoke(main, ["service", "update", "echo", "-f", path, "--untag", "current"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error: Invalid Service 'echo' in manifest" in result.output


# ─────────────────────────────────────────────
# knc sink / knc reference
# ─────────────────────────────────────────────

class TestSinkResolve:
    def test_resolve_broker(self, manifest):
        result = runner.invoke(main, ["sink", "resolve", "broker:nest", "-f", manifest])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[0] == "# broker:nest"
        assert yaml.safe_load(result.output) == {"ref": {
            "kind": "Broker",
            "apiVersion": "eventing.knative.dev/v1",
            "name": "nest",
            "namespace": "default",
        }}

    def test_resolve_url(self):
        result = runner.invoke(main, ["sink", "resolve", "https://event.receiver.uri"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {"uri": "https://event.receiver.uri"}

    def test_missing_object(self, manifest):
        result = runner.invoke(main, ["sink", "resolve", "receiver", "-f", manifest])
        assert result.exit_code == 1
        assert "sink has invalid format" in result.output
        assert "--help' for usage." in result.output

    def test_configured_prefix(self, manifest, knc_home):
        (knc_home / "config.yaml").write_text(
            "eventing:\n"
            "  sink-mappings:\n"
            "    - prefix: mybroker\n"
            "      group: eventing.knative.dev\n"
            "      version: v1\n"
            "      resource: brokers\n"
        )
        result = runner.invoke(main, ["sink", "resolve", "mybroker:nest", "-f", manifest])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["ref"]["kind"] == "Broker"

    def test_bad_config(self, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("eventing: [oops\n")
        result = runner.invoke(main, ["--config", str(config), "sink", "resolve", "https://x.dev"])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestReferenceParse:
    def test_alias(self):
        result = runner.invoke(main, ["reference", "parse", "ksvc:echo", "-n", "prod"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "apiVersion": "serving.knative.dev/v1",
            "kind": "Service",
            "namespace": "prod",
            "name": "echo",
        }

    def test_configured_alias(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("aliases:\n  - alias: deploy\n    group: apps\n    kind: Deployment\n")
        result = runner.invoke(main, ["--config", str(config), "reference", "parse", "deploy:app=web"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "selector": {"matchLabels": {"app": "web"}},
        }

    def test_unknown_alias(self):
        result = runner.invoke(main, ["reference", "parse", "foo:bar"])
        assert result.exit_code == 1
        assert "unknown kind alias 'foo'" in result.output


class TestReferenceChannelType:
    def test_builtin(self):
        result = runner.invoke(main, ["reference", "channel-type", "imc"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "apiVersion": "messaging.knative.dev/v1",
            "kind": "InMemoryChannel",
        }

    def test_explicit(self):
        result = runner.invoke(main, ["reference", "channel-type", "messaging.knative.dev:v1alpha1:KafkaChannel"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["kind"] == "KafkaChannel"

    def test_configured(self, knc_home):
        (knc_home / "config.yaml").write_text(
            "eventing:\n"
            "  channel-type-mappings:\n"
            "    - alias: kafka\n"
            "      group: messaging.knative.dev\n"
            "      version: v1alpha1\n"
            "      kind: KafkaChannel\n"
        )
        result = runner.invoke(main, ["reference", "channel-type", "kafka"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "apiVersion": "messaging.knative.dev/v1alpha1",
            "kind": "KafkaChannel",
        }

    def test_unknown(self):
        result = runner.invoke(main, ["reference", "channel-type", "kafka"])
        assert result.exit_code == 1
        assert "unknown channel type alias: 'kafka'" in result.output
        assert "reference channel-type --help' for usage." in result.output
