import pytest
import yaml

from istio_ingress_migrator import cli
from istio_ingress_migrator.errors import ConflictError

INGRESS_YAML = """
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


class FakeSink:
    def __init__(self, error=None):
        self.error = error
        self.created = []

    def create(self, spec):
        if self.error is not None:
            raise self.error
        self.created.append(spec)
        return spec.to_dict()


@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "ingress.yaml"
    path.write_text(INGRESS_YAML)
    return str(path)


@pytest.mark.parametrize(
    "argv",
    [["-n", "prod"], ["-n", "prod", "-i", ""], ["-n", "", "-i", "shop"]],
)
def test_usage_error_makes_no_api_calls(argv, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("API client must not be loaded")

    monkeypatch.setattr(cli, "load_api_client", fail)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 2


def test_dry_run_prints_manifest(manifest, capsys):
    assert cli.main(["-n", "prod", "-i", "shop", "-f", manifest, "--dry-run"]) == 0
    out = capsys.readouterr().out
    body = yaml.safe_load(out)
    assert body["kind"] == "VirtualService"
    assert body["spec"]["gateways"] == ["prod/ingressgateway"]
    assert "Successfully created" not in out


def test_create_prints_confirmation(manifest, monkeypatch, capsys):
    sink = FakeSink()
    monkeypatch.setattr(cli, "load_api_client", lambda kubeconfig, context: object())
    monkeypatch.setattr(cli, "KubeVirtualServiceSink", lambda api_client: sink)
    assert cli.main(["-i", "shop", "-n", "prod", "--file", manifest]) == 0
    assert [vs.name for vs in sink.created] == ["shop"]
    assert (
        "Successfully created VirtualService shop in namespace prod"
        in capsys.readouterr().out
    )


def test_failures_exit_non_zero(manifest, monkeypatch, capsys):
    sink = FakeSink(error=ConflictError("VirtualService prod/shop already exists"))
    monkeypatch.setattr(cli, "load_api_client", lambda kubeconfig, context: object())
    monkeypatch.setattr(cli, "KubeVirtualServiceSink", lambda api_client: sink)
    assert cli.main(["-i", "shop", "-n", "prod", "-f", manifest]) == 1
    assert cli.main(["-i", "missing", "-n", "prod", "-f", manifest, "--dry-run"]) == 1
    assert "Successfully created" not in capsys.readouterr().out


def test_badly_shaped_manifest_exits_non_zero(tmp_path, capsys):
    path = tmp_path / "broken.yaml"
    path.write_text(
        "apiVersion: networking.k8s.io/v1\n"
        "kind: Ingress\n"
        "metadata:\n"
        "  name: shop\n"
        "  namespace: prod\n"
        "spec:\n"
        "  rules:\n"
        "    - shop.example.com\n"
    )
    argv = ["-n", "prod", "-i", "shop", "-f", str(path), "--dry-run"]
    assert cli.main(argv) == 1
    assert capsys.readouterr().out == ""
