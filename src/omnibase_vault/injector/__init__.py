# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""omnibase_vault Injector Module.

Exports:
    SecretInjector: Resolves secret references into values delivered to a sink
    ReferenceParser: Secret reference grammar
    TransitDecryptor: Cached transit engine decryption
    SecretPathStore: Secret path reads and writes
    SecretCache: Transit and secret caches shared across calls
    JinjaTemplateRenderer: Key template rendering
    LeaseRenewer: Daemon mode lease renewal
"""

from omnibase_vault.injector.lease_renewer import LeaseRenewer
from omnibase_vault.injector.reference_parser import (
    ReferenceParser,
    is_encrypted,
    parse_reference,
)
from omnibase_vault.injector.secret_cache import SecretCache
from omnibase_vault.injector.secret_injector import SecretInjector, SecretSink
from omnibase_vault.injector.secret_path_store import SecretPathStore
from omnibase_vault.injector.template_renderer import JinjaTemplateRenderer
from omnibase_vault.injector.transit_decryptor import TransitDecryptor, paginate
from omnibase_vault.injector.value_cast import to_string

__all__: list[str] = [
    "JinjaTemplateRenderer",
    "LeaseRenewer",
    "ReferenceParser",
    "SecretCache",
    "SecretInjector",
    "SecretPathStore",
    "SecretSink",
    "TransitDecryptor",
    "is_encrypted",
    "paginate",
    "parse_reference",
    "to_string",
]
