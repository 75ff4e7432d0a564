"""Certificate loading for upstream (QRS/engine) and listener TLS."""

from __future__ import annotations

import ssl
from pathlib import Path

from duplicator.core.config import Settings
from duplicator.core.exceptions import ConfigurationError


def _require_file(path: Path, label: str) -> Path:
    path = path.expanduser()
    if not path.is_file():
        raise ConfigurationError(f"{label} not found at {path}")
    return path


def build_client_ssl_context(settings: Settings) -> ssl.SSLContext:
    """SSL context presenting the Sense client certificate.

    Server certificates are verified only when ``root_cert_path`` is set;
    Sense sites usually run on the self-signed root the QMC exports.
    """
    cert = _require_file(settings.client_cert_path, "Client certificate")
    key = _require_file(settings.client_cert_key_path, "Client certificate key")

    if settings.root_cert_path is not None:
        root = _require_file(settings.root_cert_path, "Root certificate")
        context = ssl.create_default_context(cafile=str(root))
    else:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    try:
        context.load_cert_chain(certfile=str(cert), keyfile=str(key))
    except (ssl.SSLError, OSError) as exc:
        raise ConfigurationError(f"Cannot load client certificate {cert}: {exc}") from exc
    return context


def server_tls_files(settings: Settings) -> tuple[str, str]:
    """Return (certfile, keyfile) for the HTTPS listener."""
    cert = _require_file(settings.ssl_cert_path, "Server certificate")
    key = _require_file(settings.ssl_cert_key_path, "Server certificate key")
    return str(cert), str(key)
