"""
Tests for the autosign command line interface.
"""

import pytest
import yaml
from click.testing import CliRunner

from autosign.config import FileConfigProvider
from autosign.main import cli, run_validation, validator_main
from autosign.modules.token import Token, sign, verify_and_decode


@pytest.fixture
def runner():
    """Click test runner"""
    return CliRunner()


def _generate(runner, config_file, *args):
    result = runner.invoke(cli, ["--quiet", "--config", config_file, "generate", *args])
    assert result.exit_code == 0, result.output
    return result.output.strip().splitlines()[-1]


class TestGenerate:
    """Test token generation"""

    def test_generate(self, runner, config_file, secret):
        """Test a generated token verifies with the configured secret"""
        signed = _generate(runner, config_file, "foo.example.com", "--requester", "ops@bastion")

        token = verify_and_decode(signed, secret)
        assert token.subject == "foo.example.com"
        assert token.reusable is False
        assert token.valid_for == 3600
        assert token.issued_by == "ops@bastion"

    def test_generate_options(self, runner, config_file, secret):
        """Test reusable and validity options"""
        signed = _generate(runner, config_file, "/.*\\.example\\.com/", "--reusable", "--validfor", "60")

        token = verify_and_decode(signed, secret)
        assert token.subject == "/.*\\.example\\.com/"
        assert token.reusable is True
        assert token.valid_for == 60
        assert "@" in token.issued_by

    def test_generate_without_secret(self, runner, write_config):
        """Test generation fails without a configured secret"""
        config_file = write_config({"general": {"loglevel": "ERROR"}}, name="nosecret.conf")

        result = runner.invoke(cli, ["--config", config_file, "generate", "foo.example.com"])

        assert result.exit_code == 1
        assert "secret" in result.output

    def test_generate_unknown_loglevel(self, runner, write_config, secret):
        """Test an unknown log level is reported as an error"""
        config_file = write_config(
            {"general": {"loglevel": "VERBOSE"}, "jwt_token": {"secret": secret}}, name="verbose.conf"
        )

        result = runner.invoke(cli, ["--config", config_file, "generate", "foo.example.com"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "VERBOSE" in result.output

    def test_generate_unreadable_config(self, runner, tmp_path):
        """Test a config file that is not a mapping is reported as an error"""
        path = tmp_path / "broken.conf"
        path.write_text("- not a mapping\n")

        result = runner.invoke(cli, ["--config", str(path), "generate", "foo.example.com"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "mapping" in result.output


class TestValidate:
    """Test validating a request read from stdin"""

    def test_one_time_token(self, runner, config_file, make_csr):
        """Test a one-time token signs exactly one request"""
        signed = _generate(runner, config_file, "foo.example.com")
        csr = make_csr("foo.example.com", signed)

        first = runner.invoke(cli, ["--config", config_file, "validate", "foo.example.com"], input=csr)
        second = runner.invoke(cli, ["--config", config_file, "validate", "foo.example.com"], input=csr)

        assert first.exit_code == 0
        assert second.exit_code == 1

    def test_wrong_certname(self, runner, config_file, make_csr):
        """Test a token for another certname is refused"""
        signed = _generate(runner, config_file, "foo.example.com")
        csr = make_csr("bar.example.com", signed)

        result = runner.invoke(cli, ["--config", config_file, "validate", "bar.example.com"], input=csr)

        assert result.exit_code == 1

    def test_no_challenge_password(self, runner, config_file, make_csr):
        """Test a request without a challenge password is refused"""
        result = runner.invoke(
            cli, ["--config", config_file, "validate", "foo.example.com"], input=make_csr("foo.example.com")
        )
        assert result.exit_code == 1

    def test_garbage_request(self, runner, config_file):
        """Test an undecodable request is refused"""
        result = runner.invoke(cli, ["--config", config_file, "validate", "foo.example.com"], input=b"garbage")
        assert result.exit_code == 1

    def test_unreadable_config(self, runner, tmp_path, make_csr):
        """Test a broken config file refuses instead of crashing"""
        path = tmp_path / "broken.conf"
        path.write_text("- not a mapping\n")

        result = runner.invoke(
            cli, ["--config", str(path), "validate", "foo.example.com"], input=make_csr("foo.example.com")
        )

        assert result.exit_code == 1
        assert "mapping" in result.output

    def test_secret_from_environment(self, runner, monkeypatch, write_config, journal_path, make_csr):
        """Test AUTOSIGN_JWT_SECRET supplies the token secret"""
        secret = "environment-secret-" + "e" * 64
        monkeypatch.setenv("AUTOSIGN_JWT_SECRET", secret)
        monkeypatch.setenv("AUTOSIGN_JOURNALFILE", journal_path)
        config_file = write_config({"general": {"validation_order": ["jwt_token"]}}, name="env.conf")

        csr = make_csr("foo.example.com", sign(Token(subject="foo.example.com"), secret))
        result = runner.invoke(cli, ["--config", config_file, "validate", "foo.example.com"], input=csr)

        assert result.exit_code == 0


class TestValidatorMain:
    """Test the policy executable entry point"""

    def test_unknown_loglevel(self, runner, write_config, secret, journal_path, make_csr):
        """Test an unknown log level denies cleanly instead of crashing"""
        config_file = write_config(
            {
                "general": {"loglevel": "VERBOSE"},
                "jwt_token": {"secret": secret, "journalfile": journal_path},
            },
            name="verbose.conf",
        )
        csr = make_csr("foo.example.com", sign(Token(subject="foo.example.com"), secret))

        result = runner.invoke(validator_main, ["--config", config_file, "foo.example.com"], input=csr)

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "VERBOSE" in result.output

    def test_approve_and_replay(self, runner, config_file, secret, make_csr):
        """Test exit status 0 for a valid token and 1 on replay"""
        csr = make_csr("foo.example.com", sign(Token(subject="foo.example.com"), secret))

        first = runner.invoke(validator_main, ["--config", config_file, "foo.example.com"], input=csr)
        second = runner.invoke(validator_main, ["--config", config_file, "foo.example.com"], input=csr)

        assert first.exit_code == 0
        assert second.exit_code == 1

    def test_password_list(self, runner, write_config, make_csr):
        """Test other validators run when the token validator refuses"""
        config_file = write_config(
            {
                "general": {"validation_order": ["password_list"]},
                "password_list": {"password": ["hunter2"]},
            },
            name="passwords.conf",
        )

        approved = runner.invoke(
            validator_main, ["--config", config_file, "foo.example.com"], input=make_csr("foo.example.com", "hunter2")
        )
        refused = runner.invoke(
            validator_main, ["--config", config_file, "foo.example.com"], input=make_csr("foo.example.com", "nope")
        )

        assert approved.exit_code == 0
        assert refused.exit_code == 1


class TestConfigSetup:
    """Test writing a starter configuration"""

    def test_setup(self, runner, tmp_path):
        """Test the file is written once and never overwritten"""
        path = tmp_path / "autosign.conf"

        first = runner.invoke(cli, ["config", "setup", "--path", str(path)])
        second = runner.invoke(cli, ["config", "setup", "--path", str(path)])

        assert first.exit_code == 0
        assert str(path) in first.output
        assert second.exit_code == 1
        assert "already exists" in second.output

        with open(path, encoding="utf-8") as f:
            assert yaml.safe_load(f)["jwt_token"]["secret"]


def test_run_validation(config_file, secret, make_csr):
    """Test run_validation without the CLI"""
    provider = FileConfigProvider(config_file)
    csr = make_csr("foo.example.com", sign(Token(subject="foo.example.com", reusable=True), secret))

    assert run_validation(provider, "foo.example.com", csr) is True
    assert run_validation(provider, "foo.example.com", csr) is True
    assert run_validation(provider, "bar.example.com", csr) is False
    assert run_validation(provider, "foo.example.com", b"garbage") is False
