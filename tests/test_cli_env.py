from typer.testing import CliRunner

from powerschool_client.cli import app

runner = CliRunner()


def test_cli_reads_credentials_and_cert_from_env(monkeypatch, tmp_path):
    cert = tmp_path / "ca.pem"
    cert.write_text("dummy", encoding="utf-8")
    captured: dict[str, object] = {}

    class DummyClient:
        def __init__(self, base_url, client_id, client_secret, **kwargs):
            captured.update(
                base_url=base_url, client_id=client_id, client_secret=client_secret, **kwargs
            )
            self.access_token = "env-token"

        def retrieve_token(self):
            return self

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    monkeypatch.setattr("powerschool_client.cli.PowerSchoolClient", DummyClient)

    result = runner.invoke(
        app,
        ["token"],
        env={
            "PS_URL": "https://ps.example.com",
            "PS_CLIENT_ID": "cid",
            "PS_CLIENT_SECRET": "csecret",
            "PS_CA_CERT": str(cert),
            "PS_VERIFY_SSL": "1",
        },
    )

    assert result.exit_code == 0
    assert captured["base_url"] == "https://ps.example.com"
    assert captured["client_id"] == "cid"
    assert captured["verify_ssl"] == str(cert)


def test_cli_env_cert_with_no_verify_rejected(tmp_path):
    cert = tmp_path / "ca.pem"
    cert.write_text("dummy", encoding="utf-8")

    result = runner.invoke(
        app,
        ["token", "--base-url", "https://ps.example.com", "--client-id", "cid",
         "--client-secret", "csecret"],
        env={"PS_CA_CERT": str(cert), "PS_VERIFY_SSL": "0"},
    )

    assert result.exit_code != 0
    assert "Cannot combine --cert with --no-verify" in result.stderr
