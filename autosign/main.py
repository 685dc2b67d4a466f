#!/usr/bin/env python3
"""
Autosign - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Configures logging
3. Decodes the signing request and runs the validator chain

All decision logic is in the modules, following black box principles.

A certificate authority runs `autosign-validator <certname>` with the
request on stdin and signs the certificate if the exit status is 0.
"""

import getpass
import logging
import socket
import sys
from typing import Optional

import click

from autosign import __version__
from autosign.config.provider import (
    FileConfigProvider,
    GeneralConfig,
    generate_default_config,
    overrides_from_env,
)
from autosign.errors import ConfigurationError
from autosign.logging_config import configure_logging
from autosign.modules.decoder import decode_csr
from autosign.modules.token import Token, sign
from autosign.modules.validators import ValidatorFactory

logger = logging.getLogger("autosign.main")

EXIT_APPROVED = 0
EXIT_DENIED = 1


def _load_provider(config_file: Optional[str], debug: bool = False, quiet: bool = False) -> FileConfigProvider:
    """Build the config provider and configure logging from it."""
    provider = FileConfigProvider(config_file, overrides=overrides_from_env())
    general: GeneralConfig = provider.get_general_config()

    level = general.loglevel
    if debug:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    try:
        configure_logging(level, general.logfile)
    except ValueError as e:
        if not general.logfile:
            raise ConfigurationError(f"Unable to configure logging: {e}") from e
        configure_logging(level)
        logger.warning(f"Unable to log to {general.logfile}, logging to stderr only: {e}")
    return provider


def _default_requester() -> str:
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    return f"{user}@{socket.gethostname()}"


def _validate_stdin(certname: str, config_file: Optional[str], debug: bool, quiet: bool = False) -> None:
    """Read a CSR from stdin, decide, and exit with the policy executable status."""
    try:
        provider = _load_provider(config_file, debug, quiet)
    except ConfigurationError as e:
        click.echo(f"autosign: {e}", err=True)
        sys.exit(EXIT_DENIED)

    csr = click.get_binary_stream("stdin").read()
    approved = run_validation(provider, certname, csr)
    sys.exit(EXIT_APPROVED if approved else EXIT_DENIED)


def run_validation(provider: FileConfigProvider, certname: str, csr: bytes) -> bool:
    """
    Decode a signing request and decide whether to sign it.

    Args:
        provider: Configuration provider
        certname: Certname the certificate authority is asking about
        csr: Raw request as read from stdin

    Returns:
        True if the request should be signed
    """
    decoded = decode_csr(csr)
    if decoded is None:
        logger.error(f"Unable to decode CSR for '{certname}'")
        return False

    if decoded.common_name is not None and decoded.common_name != certname:
        logger.warning(
            f"Requested certname '{certname}' differs from CSR common name '{decoded.common_name}'"
        )

    if decoded.challenge_password is None:
        logger.info(f"CSR for '{certname}' has no challengePassword; validators may still approve it")

    chain = ValidatorFactory.build(provider)
    try:
        approved = chain.decide(decoded.challenge_password or "", certname, csr)
    except ConfigurationError as e:
        logger.error(f"Unable to validate '{certname}': {e}")
        return False

    for result in chain.results:
        logger.debug(f"{result.name}: ok={result.ok} error={result.error}")
    return approved


@click.group()
@click.version_option(__version__)
@click.option("--config", "-c", "config_file", type=click.Path(dir_okay=False), help="Configuration file")
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], debug: bool, quiet: bool):
    """Policy-based autosigning for certificate signing requests."""
    ctx.obj = {"config_file": config_file, "debug": debug, "quiet": quiet}


@cli.command()
@click.argument("certname")
@click.option("--reusable", "-r", is_flag=True, help="Allow the token to be used more than once")
@click.option("--validfor", "-t", type=int, default=None, help="Seconds the token is valid for")
@click.option("--requester", default=None, help="Issuer recorded in the token")
@click.pass_obj
def generate(obj, certname: str, reusable: bool, validfor: Optional[int], requester: Optional[str]):
    """Generate a signed token for CERTNAME (or a /regex/ of certnames)."""
    try:
        provider = _load_provider(obj["config_file"], obj["debug"], obj["quiet"])
        settings = provider.get_section("jwt_token")
        default_validity = settings.get("validity", provider.get_general_config().token_validity)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    secret = settings.get("secret")
    if not secret:
        raise click.ClickException("No jwt_token secret configured; run 'autosign config setup' first")

    if validfor is None:
        validfor = int(default_validity)
    if requester is None:
        requester = _default_requester()

    token = Token(subject=certname, reusable=reusable, valid_for=validfor, issued_by=requester)
    logger.info(f"Generated token {token.id} for '{certname}' valid for {validfor}s, reusable={reusable}")
    click.echo(sign(token, str(secret)))


@cli.command()
@click.argument("certname")
@click.pass_obj
def validate(obj, certname: str):
    """Validate a CSR read from stdin for CERTNAME."""
    _validate_stdin(certname, obj["config_file"], obj["debug"], obj["quiet"])


@cli.group()
def config():
    """Manage the autosign configuration file."""


@config.command()
@click.option("--path", default="/etc/autosign.conf", show_default=True, help="Where to write the file")
@click.pass_obj
def setup(obj, path: str):
    """Write a default configuration file with a random secret."""
    try:
        written = generate_default_config(path)
    except (ConfigurationError, OSError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Wrote configuration to {written}")


@click.command()
@click.argument("certname")
@click.option("--config", "-c", "config_file", type=click.Path(dir_okay=False), help="Configuration file")
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
def validator_main(certname: str, config_file: Optional[str], debug: bool):
    """Autosign policy executable: CSR on stdin, exit 0 to sign CERTNAME."""
    _validate_stdin(certname, config_file, debug)


if __name__ == "__main__":
    cli()
