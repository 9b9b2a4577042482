"""Chain collaborators — Esplora data provider and the preparation backend."""

from ordinal_minter.chain.backend.client import BackendClient
from ordinal_minter.chain.esplora.client import EsploraClient

__all__ = ["BackendClient", "EsploraClient"]
