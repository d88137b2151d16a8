# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/host/migrate.py

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Tuple

from pydantic import ValidationError

from kubenode.drivers.none import NoneDriver
from kubenode.errors import HostDecodeError

from .models import (
    CONFIG_VERSION,
    AuthOptions,
    EngineOptions,
    Host,
    HostOptions,
    Metadata,
    MetadataV0,
)
from .rawjson import scan_members

log = logging.getLogger("kubenode")


@dataclass
class RawDataDriver(NoneDriver):
    """
    Stand-in driver used while the real backend is still unknown. Its payload
    is carried verbatim so it can be decoded again once the driver name is.
    """

    data: bytes = field(default=b"", repr=False, metadata={"persist": False})

    def to_payload(self) -> bytes:
        return self.data

    def load_payload(self, data: bytes) -> None:
        self.data = data

    def merge_payload(self, raw: bytes) -> bytes:
        return self.data


def migrate_host_metadata_v0_to_v1(m: MetadataV0) -> Metadata:
    return Metadata(
        config_version=m.config_version,
        driver_name=m.driver_name,
        host_options=HostOptions(
            engine_options=EngineOptions(),
            auth_options=AuthOptions(
                store_path=m.store_path,
                ca_cert_path=m.ca_cert_path,
                ca_private_key_path=m.private_key_path,
                server_cert_path=m.server_cert_path,
                server_key_path=m.server_key_path,
                client_cert_path=m.client_cert_path,
            ),
        ),
    )


def _load_object(data: bytes) -> dict:
    try:
        obj = json.loads(data)
    except ValueError as e:
        raise HostDecodeError(f"malformed host record: {e}") from e
    if not isinstance(obj, dict):
        raise HostDecodeError("malformed host record: not a JSON object")
    return obj


def get_migrated_host_metadata(data: bytes) -> Metadata:
    """First pass: just enough of the record to pick a driver and its store."""
    obj = _load_object(data)
    try:
        v0 = MetadataV0.model_validate(obj)
        if v0.config_version < CONFIG_VERSION:
            return migrate_host_metadata_v0_to_v1(v0)
        return Metadata.model_validate(obj)
    except ValidationError as e:
        raise HostDecodeError(f"malformed host metadata: {e}") from e


def migrate_host(name: str, data: bytes) -> Tuple[Host, bool]:
    """
    Decode a persisted host record of any known version into the current
    shape. The driver is a RawDataDriver holding the untouched payload.
    Nothing is written back; the flag tells the caller whether it should.
    """
    metadata = get_migrated_host_metadata(data)
    migration_performed = metadata.config_version < CONFIG_VERSION

    global_store_path = os.path.dirname(
        os.path.dirname(metadata.host_options.auth_options.store_path)
    )
    driver = RawDataDriver(name, global_store_path)

    try:
        members = scan_members(data)
    except ValueError as e:
        raise HostDecodeError(f"Error unmarshalling most recent host version: {e}") from e
    obj = _load_object(data)

    if migration_performed:
        host_options = metadata.host_options
    else:
        try:
            host_options = HostOptions.model_validate(obj.get("host_options") or {})
        except ValidationError as e:
            raise HostDecodeError(f"Error unmarshalling most recent host version: {e}") from e

    driver.load_payload(members.get("driver", b""))
    host = Host(
        name=obj.get("name") or name,
        driver_name=metadata.driver_name,
        driver=driver,
        host_options=host_options,
        config_version=CONFIG_VERSION,
        raw_driver=driver.data,
        migrated=migration_performed,
    )
    if migration_performed:
        log.debug("migrated host %s from config version %d", name, metadata.config_version)
    return host, migration_performed


def decode_host(name: str, data: bytes) -> Host:
    host, _ = migrate_host(name, data)
    return host


def driver_payload(host: Host) -> bytes:
    """The driver bytes to persist, reusing the payload read from disk where possible."""
    if host.driver is None:
        return host.raw_driver
    if host.raw_driver:
        return host.driver.merge_payload(host.raw_driver)
    return host.driver.to_payload()


def encode_host(host: Host) -> bytes:
    """
    Serialize a host record. The driver payload is spliced in as-is so an
    unchanged payload survives a load/save cycle byte for byte.
    """
    raw = driver_payload(host)
    if not raw:
        raw = b"null"
    members = [
        (b"config_version", json.dumps(host.config_version).encode()),
        (b"driver", raw),
        (b"driver_name", json.dumps(host.driver_name).encode()),
        (b"host_options", json.dumps(host.host_options.model_dump(mode="json"), sort_keys=True).encode()),
        (b"name", json.dumps(host.name).encode()),
    ]
    body = b",\n".join(b'    "' + k + b'": ' + v for k, v in members)
    return b"{\n" + body + b"\n}\n"
