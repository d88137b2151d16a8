# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/provision/certs.py

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

log = logging.getLogger("kubenode")

DEFAULT_BITS = 2048
VALID_DAYS = 1080


@dataclass
class CertOptions:
    cert_file: str
    key_file: str
    ca_file: str
    ca_key_file: str
    org: str
    hosts: List[str] = field(default_factory=list)
    common_name: Optional[str] = None
    bits: int = DEFAULT_BITS
    client: bool = False


def _new_key(bits: int) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(
        backend=default_backend(), public_exponent=65537, key_size=bits
    )


def _write_key(path: str, key: rsa.RSAPrivateKey) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    p.chmod(0o600)


def _write_cert(path: str, cert: x509.Certificate) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(cert.public_bytes(serialization.Encoding.PEM))


def _load_ca(ca_file: str, ca_key_file: str):
    ca_cert = x509.load_pem_x509_certificate(Path(ca_file).read_bytes())
    ca_key = serialization.load_pem_private_key(Path(ca_key_file).read_bytes(), password=None)
    return ca_cert, ca_key


def san_entries(hosts: List[str]) -> List[x509.GeneralName]:
    """IP literals become IP SANs, everything else a DNS SAN. Order and duplicates are kept."""
    names: List[x509.GeneralName] = []
    for h in hosts:
        if not h:
            continue
        try:
            names.append(x509.IPAddress(ipaddress.ip_address(h)))
        except ValueError:
            names.append(x509.DNSName(h))
    return names


def generate_ca(cert_file: str, key_file: str, org: str, bits: int = DEFAULT_BITS) -> None:
    key = _new_key(bits)
    subject = x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, org),
        x509.NameAttribute(NameOID.COMMON_NAME, f"{org}CA"),
    ])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=VALID_DAYS))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=True,
                data_encipherment=False, key_agreement=True, key_cert_sign=True,
                crl_sign=False, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .sign(key, hashes.SHA256())
    )
    _write_key(key_file, key)
    _write_cert(cert_file, cert)
    log.debug("generated CA %s (org=%s)", cert_file, org)


def generate_cert(opts: CertOptions) -> None:
    """Issue a certificate signed by the CA at opts.ca_file / opts.ca_key_file."""
    ca_cert, ca_key = _load_ca(opts.ca_file, opts.ca_key_file)
    key = _new_key(opts.bits)

    attrs = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, opts.org)]
    if opts.common_name:
        attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, opts.common_name))

    usage = ExtendedKeyUsageOID.CLIENT_AUTH if opts.client else ExtendedKeyUsageOID.SERVER_AUTH
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name(attrs))
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=VALID_DAYS))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=True,
                data_encipherment=False, key_agreement=True, key_cert_sign=False,
                crl_sign=False, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([usage]), critical=False)
    )
    sans = san_entries(opts.hosts)
    if sans:
        builder = builder.add_extension(x509.SubjectAlternativeName(sans), critical=False)

    cert = builder.sign(ca_key, hashes.SHA256())
    _write_key(opts.key_file, key)
    _write_cert(opts.cert_file, cert)


def generate_client_cert(
    cert_file: str, key_file: str, ca_file: str, ca_key_file: str, org: str, bits: int = DEFAULT_BITS
) -> None:
    generate_cert(CertOptions(
        cert_file=cert_file, key_file=key_file, ca_file=ca_file, ca_key_file=ca_key_file,
        org=org, bits=bits, client=True,
    ))


def bootstrap_certificates(auth, org: str) -> None:
    """Create the shared CA and client cert the first time they are needed."""
    if not Path(auth.ca_cert_path).exists() or not Path(auth.ca_private_key_path).exists():
        log.info("Creating CA: %s", auth.ca_cert_path)
        generate_ca(auth.ca_cert_path, auth.ca_private_key_path, org)
    if not Path(auth.client_cert_path).exists() or not Path(auth.client_key_path).exists():
        log.info("Creating client certificate: %s", auth.client_cert_path)
        generate_client_cert(
            auth.client_cert_path, auth.client_key_path,
            auth.ca_cert_path, auth.ca_private_key_path, org,
        )
