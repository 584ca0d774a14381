import io
import json

import pytest
import yaml

from istio_ingress_migrator.errors import (
    MalformedInputError,
    NotFoundError,
    TransportError,
)
from istio_ingress_migrator.manifests import FileIngressSource, ManifestSink
from istio_ingress_migrator.migrator import map_ingress

INGRESS_YAML = """
apiVersion: v1
kind: Service
metadata:
  name: cart
  namespace: prod
---
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: shop
  namespace: prod
spec:
  rules:
    - host: shop.example.com
      http:
        paths:
          - path: /
            pathType: Prefix
            backend:
              service:
                name: cart
                port:
                  number: 8080
"""


def test_reads_ingress_from_multi_document_yaml(tmp_path):
    manifest = tmp_path / "ingress.yaml"
    manifest.write_text(INGRESS_YAML)
    ingress = FileIngressSource(str(manifest)).get("prod", "shop")
    assert ingress.rules[0].host == "shop.example.com"
    assert ingress.rules[0].paths[0].backend_service_port == 8080


def test_reads_ingress_from_kubectl_list(tmp_path):
    ingress = list(yaml.safe_load_all(INGRESS_YAML))[1]
    other = dict(ingress, metadata={"name": "shop", "namespace": "staging"})
    manifest = tmp_path / "ingresses.json"
    manifest.write_text(
        json.dumps({"apiVersion": "v1", "kind": "List", "items": [other, ingress]})
    )
    source = FileIngressSource(str(manifest))
    assert source.get("prod", "shop").namespace == "prod"
    assert source.get("staging", "shop").namespace == "staging"


def test_missing_ingress_or_file(tmp_path):
    manifest = tmp_path / "ingress.yaml"
    manifest.write_text(INGRESS_YAML)
    with pytest.raises(NotFoundError):
        FileIngressSource(str(manifest)).get("prod", "cart")
    with pytest.raises(TransportError):
        FileIngressSource(str(tmp_path / "absent.yaml")).get("prod", "shop")


def test_manifest_sink_writes_yaml_and_json(tmp_path):
    manifest = tmp_path / "ingress.yaml"
    manifest.write_text(INGRESS_YAML)
    vs = map_ingress(FileIngressSource(str(manifest)).get("prod", "shop"))

    out = io.StringIO()
    ManifestSink(out).create(vs)
    assert yaml.safe_load(out.getvalue()) == vs.to_dict()

    out = io.StringIO()
    ManifestSink(out, "json").create(vs)
    assert json.loads(out.getvalue()) == vs.to_dict()


def test_badly_shaped_ingress_in_file(tmp_path):
    broken = INGRESS_YAML.replace(
        "    - host: shop.example.com\n", "    - shop.example.com\n    - host: x\n"
    )
    manifest = tmp_path / "ingress.yaml"
    manifest.write_text(broken)
    with pytest.raises(MalformedInputError) as excinfo:
        FileIngressSource(str(manifest)).get("prod", "shop")
    assert excinfo.value.field == "spec.rules[0]"
